"""External market data feeds.

- ExchangeRateClient: latest currency rate tables
- BenchmarkClient: CDI / IPCA period rates from the Banco Central SGS API
- QuoteAnalysisClient: measured volatility from Yahoo Finance

Usage:
    from wealth.services.market_data import BenchmarkClient

    with BenchmarkClient() as client:
        cdi = client.fetch_rate_a()
"""

from .benchmark_client import BenchmarkClient, BenchmarkPoint
from .exchange_rate_client import ExchangeRateClient
from .quote_analysis_client import QuoteAnalysis, QuoteAnalysisClient

__all__ = [
    "BenchmarkClient",
    "BenchmarkPoint",
    "ExchangeRateClient",
    "QuoteAnalysis",
    "QuoteAnalysisClient",
]
