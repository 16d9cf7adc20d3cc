"""Value objects returned by the analyzers."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


@dataclass
class PeriodReturn:
    """Return of one calendar month or year."""

    label: str  # "2025-03" or "2025"
    date: date  # snapshot closing the bucket
    return_percent: Decimal
    cumulative_percent: Decimal
    total_value: Decimal
    provisional: bool = False


@dataclass
class PerformanceReport:
    """Performance of a portfolio over a period.

    provisional is True when there was no history and the figures are a
    linear projection of the current totals, not recorded data.
    """

    period: str
    start_date: date | None
    end_date: date
    accumulated_return: Decimal
    monthly_returns: list[PeriodReturn] = field(default_factory=list)
    annual_returns: list[PeriodReturn] = field(default_factory=list)
    benchmark_accumulated: Decimal = Decimal("0")
    benchmark_source: str = "fallback"
    benchmark_ratio: Decimal = Decimal("0")
    inflation_accumulated: Decimal = Decimal("0")
    real_return: Decimal = Decimal("0")
    provisional: bool = False


@dataclass
class AssetContribution:
    """One position's share of the portfolio return."""

    position_id: int | None
    name: str
    ticker: str | None
    instrument_type: str | None
    value: Decimal
    invested: Decimal
    weight: Decimal
    contribution: Decimal
    impact: str
    volatility: Decimal
    volatility_source: str


@dataclass
class IssuerCoverage:
    """Insured exposure at one issuer."""

    issuer: str
    total: Decimal
    covered: Decimal
    uncovered: Decimal
    position_count: int


@dataclass
class CoverageReport:
    """Deposit insurance exposure of a set of positions."""

    covered_value: Decimal
    uncovered_value: Decimal
    eligible_value: Decimal
    percent: Decimal
    remaining_limit: Decimal
    insurance_limit: Decimal
    total_limit: Decimal
    by_issuer: list[IssuerCoverage] = field(default_factory=list)
