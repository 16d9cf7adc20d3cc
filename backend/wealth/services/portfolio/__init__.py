"""Portfolio services: valuation, benchmarks, snapshots and position edits."""

from .benchmark_service import BenchmarkService, accumulate
from .position_service import PositionService
from .snapshot_service import SnapshotEngine, get_history
from .valuation_service import PortfolioValuationService, ValuationAggregator

__all__ = [
    "BenchmarkService",
    "PortfolioValuationService",
    "PositionService",
    "SnapshotEngine",
    "ValuationAggregator",
    "accumulate",
    "get_history",
]
