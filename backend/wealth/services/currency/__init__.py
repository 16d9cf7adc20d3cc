"""Currency services: rate cache and reporting-currency consolidation."""

from .consolidator import ConsolidationResult, CurrencyConsolidator
from .rate_cache import FALLBACK_RATES, RateCache, RateEntry

__all__ = [
    "FALLBACK_RATES",
    "ConsolidationResult",
    "CurrencyConsolidator",
    "RateCache",
    "RateEntry",
]
