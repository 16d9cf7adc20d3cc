"""Dependencies providing shared engine components to routes.

Tests override these with deterministic fakes via app.dependency_overrides.
"""

from fastapi import Request

from wealth.services.currency.rate_cache import RateCache
from wealth.services.market_data.quote_analysis_client import QuoteAnalysisClient
from wealth.services.portfolio.benchmark_service import BenchmarkService
from wealth.services.portfolio.snapshot_service import SnapshotEngine


def get_rate_cache(request: Request) -> RateCache:
    """The application's rate cache (created in the lifespan handler)."""
    cache = getattr(request.app.state, "rate_cache", None)
    if cache is None:
        cache = RateCache()
        request.app.state.rate_cache = cache
    return cache


def get_quote_client() -> QuoteAnalysisClient:
    return QuoteAnalysisClient()


def get_benchmark_service() -> BenchmarkService:
    return BenchmarkService()


def get_snapshot_engine() -> SnapshotEngine:
    return SnapshotEngine()
