"""Currency rates API router."""

from fastapi import APIRouter, Depends

from wealth.dependencies.services import get_rate_cache
from wealth.schemas.analytics import RatesResponse
from wealth.services.currency.rate_cache import RateCache

router = APIRouter(prefix="/api/rates", tags=["rates"])


@router.get("", response_model=RatesResponse)
def get_rates(rate_cache: RateCache = Depends(get_rate_cache)):
    """Current rate table, in reporting currency per foreign unit."""
    entries = [rate_cache.get_rate(code) for code in sorted(rate_cache.snapshot())]
    status_info = rate_cache.status()
    return {
        "reporting_currency": status_info["reporting_currency"],
        "source": status_info["source"],
        "fetched_at": status_info["fetched_at"],
        "stale": status_info["stale"],
        "rates": [entry for entry in entries if entry is not None],
    }
