"""Value objects for portfolio valuation and snapshot batches."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from wealth.services.exceptions import PartialBatchFailure


@dataclass
class PortfolioTotals:
    """Aggregate of a set of positions, in the reporting currency."""

    total_value: Decimal
    total_invested: Decimal
    total_gain: Decimal
    gain_percent: Decimal
    position_count: int = 0
    skipped: list[str] = field(default_factory=list)


@dataclass
class WealthTotals:
    """Investments and global assets, tracked independently."""

    investments_value: Decimal
    investments_invested: Decimal
    investments_gain: Decimal
    investments_gain_percent: Decimal
    global_value: Decimal
    total_wealth: Decimal
    position_count: int = 0
    global_asset_count: int = 0
    skipped: list[str] = field(default_factory=list)


@dataclass
class AllocationSlice:
    """Current value held in one instrument type."""

    instrument_type: str
    value: Decimal
    weight: Decimal
    position_count: int


@dataclass
class BenchmarkRates:
    """Accumulated benchmark rates in percent; None when the feed failed."""

    rate_a_accumulated: Decimal | None
    rate_b_accumulated: Decimal | None

    @property
    def available(self) -> bool:
        return self.rate_a_accumulated is not None


@dataclass
class PortfolioSnapshotResult:
    """Outcome of snapshotting one portfolio."""

    portfolio_id: str
    success: bool
    error: str | None = None
    total_value: Decimal | None = None


@dataclass
class SnapshotBatchResult:
    """Outcome of a snapshot batch across portfolios."""

    snapshot_date: date
    results: list[PortfolioSnapshotResult] = field(default_factory=list)
    benchmark: BenchmarkRates | None = None
    elapsed_seconds: float = 0.0

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def failures(self) -> dict[str, str]:
        return {r.portfolio_id: r.error or "unknown error" for r in self.results if not r.success}

    def raise_for_failures(self) -> None:
        """Raise PartialBatchFailure if any portfolio failed."""
        if self.failed:
            raise PartialBatchFailure(self.failures)
