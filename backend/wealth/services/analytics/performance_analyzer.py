"""Period returns and benchmark comparison from the snapshot series."""

import calendar
import logging
from collections.abc import Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from wealth.config import settings
from wealth.constants import Period
from wealth.services.analytics.analytics_types import PerformanceReport, PeriodReturn
from wealth.services.market_data.benchmark_client import BenchmarkPoint
from wealth.services.portfolio.benchmark_service import accumulated_between
from wealth.services.portfolio.valuation_service import percent, to_decimal
from wealth.services.portfolio.valuation_types import PortfolioTotals

logger = logging.getLogger(__name__)

PRECISION = Decimal("0.0001")
NEAR_ZERO = Decimal("1e-9")
ZERO = Decimal("0")


def months_before(day: date, months: int) -> date:
    """Same day N months earlier, clamped to the month's last day."""
    month_index = day.year * 12 + day.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def resolve_period(
    period: str | None,
    today: date,
    start: date | None = None,
    end: date | None = None,
) -> tuple[date | None, date]:
    """Turn a period filter into (start_date, end_date).

    Explicit start/end take precedence over the period. A None start means
    "from the beginning of history".

    Raises:
        ValueError: If the period is not one of Period.CHOICES
    """
    end_date = end or today
    if start is not None:
        return start, end_date

    period = (period or Period.ALL).upper()
    if period in Period.MONTHS:
        return months_before(end_date, Period.MONTHS[period]), end_date
    if period == Period.YEAR_TO_DATE:
        return date(end_date.year, 1, 1), end_date
    if period == Period.ALL:
        return None, end_date
    raise ValueError(f"Unknown period {period!r}; expected one of {', '.join(Period.CHOICES)}")


def period_return(previous, current) -> Decimal:
    """Return between two snapshots from their endpoint totals.

    totalGain / totalInvested * 100, where totalGain is the gain earned
    between the two snapshots and totalInvested the capital invested at the
    later one. Measured from a portfolio's first snapshot this equals its
    lifetime gain%.
    """
    gain = to_decimal(current.total_gain) - to_decimal(previous.total_gain)
    return percent(gain, to_decimal(current.total_invested))


def cumulative_return(snapshot) -> Decimal:
    """Lifetime gain over invested capital at a snapshot."""
    return percent(to_decimal(snapshot.total_gain), to_decimal(snapshot.total_invested))


def ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator * 100, 0 for a (near) zero denominator."""
    if abs(denominator) < NEAR_ZERO:
        return ZERO
    return (numerator / denominator * 100).quantize(PRECISION, rounding=ROUND_HALF_UP)


def real_return(nominal: Decimal, inflation: Decimal) -> Decimal:
    """Inflation-adjusted return in percent: ((1 + r) / (1 + i) - 1) * 100."""
    divisor = 1 + inflation / 100
    if abs(divisor) < NEAR_ZERO:
        return ZERO
    return (((1 + nominal / 100) / divisor - 1) * 100).quantize(PRECISION, rounding=ROUND_HALF_UP)


class PerformanceAnalyzer:
    """Derives accumulated, monthly and annual returns from snapshots.

    The accumulated return comes from the endpoint snapshots of the period,
    never from summing monthly returns. Monthly and annual breakdowns use the
    last snapshot of each calendar month/year.

    When the period holds no history at all the report is a straight-line
    projection of the current totals, flagged provisional on the report and
    on every point.

    Usage:
        analyzer = PerformanceAnalyzer()
        report = analyzer.analyze(snapshots, Period.TWELVE_MONTHS, date.today())
    """

    def __init__(
        self,
        fallback_benchmark: Decimal | None = None,
        fallback_inflation: Decimal | None = None,
    ) -> None:
        self.fallback_benchmark = Decimal(
            str(settings.fallback_rate_a_12m if fallback_benchmark is None else fallback_benchmark)
        )
        self.fallback_inflation = Decimal(
            str(settings.fallback_rate_b_12m if fallback_inflation is None else fallback_inflation)
        )

    def analyze(
        self,
        snapshots: Sequence,
        period: str | None = Period.ALL,
        today: date | None = None,
        benchmark: Sequence[BenchmarkPoint] | None = None,
        current_totals: PortfolioTotals | None = None,
        inflation: Sequence[BenchmarkPoint] | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> PerformanceReport:
        """Analyze a portfolio's snapshot series over a period.

        Args:
            snapshots: HistoricalSnapshot-like rows of one portfolio, any order
            period: One of Period.CHOICES (ignored when start is given)
            today: Reference date for relative periods
            benchmark: Rate A series (decimal period rates) to compound
            current_totals: Live totals, used only when there is no history
            inflation: Rate B series to compound for the real return
            start: Explicit period start
            end: Explicit period end

        Returns:
            PerformanceReport
        """
        today = today or date.today()
        start_date, end_date = resolve_period(period, today, start, end)
        label = (period or Period.ALL).upper() if start is None else "CUSTOM"

        ordered = sorted(snapshots, key=lambda s: s.date)
        in_period = [
            s for s in ordered if (start_date is None or s.date >= start_date) and s.date <= end_date
        ]

        if not in_period:
            return self._provisional(label, start_date, end_date, benchmark, current_totals)

        first, last = in_period[0], in_period[-1]
        lifetime = label == Period.ALL or first is last
        accumulated = cumulative_return(last) if lifetime else period_return(first, last)

        # Benchmarks only cover the stretch the history does, lifetime or not
        bench, bench_source = self._benchmark(benchmark, first.date, last)
        infl = self._inflation(inflation, first.date, last)

        prior = [s for s in ordered if start_date is not None and s.date < start_date]
        prior_snapshot = prior[-1] if prior else None

        return PerformanceReport(
            period=label,
            start_date=start_date or first.date,
            end_date=end_date,
            accumulated_return=accumulated,
            monthly_returns=self._bucket_returns(
                in_period, prior_snapshot, lambda d: f"{d.year:04d}-{d.month:02d}"
            ),
            annual_returns=self._bucket_returns(in_period, prior_snapshot, lambda d: f"{d.year:04d}"),
            benchmark_accumulated=bench,
            benchmark_source=bench_source,
            benchmark_ratio=ratio(accumulated, bench),
            inflation_accumulated=infl,
            real_return=real_return(accumulated, infl),
            provisional=False,
        )

    @staticmethod
    def _bucket_returns(snapshots: Sequence, prior, key) -> list[PeriodReturn]:
        last_per_bucket: dict[str, object] = {}
        for snapshot in snapshots:
            last_per_bucket[key(snapshot.date)] = snapshot

        returns = []
        previous = prior
        for bucket, snapshot in last_per_bucket.items():
            if previous is None:
                value = cumulative_return(snapshot)
            else:
                value = period_return(previous, snapshot)
            returns.append(
                PeriodReturn(
                    label=bucket,
                    date=snapshot.date,
                    return_percent=value,
                    cumulative_percent=cumulative_return(snapshot),
                    total_value=to_decimal(snapshot.total_value),
                )
            )
            previous = snapshot
        return returns

    def _benchmark(self, series, start: date, end_snapshot) -> tuple[Decimal, str]:
        if series:
            compounded = accumulated_between(series, start, end_snapshot.date)
            if compounded is not None:
                return compounded, "series"
        stored = getattr(end_snapshot, "rate_a_accumulated", None) if end_snapshot else None
        if stored is not None:
            return to_decimal(stored), "snapshot"
        return self.fallback_benchmark, "fallback"

    def _inflation(self, series, start: date, end_snapshot) -> Decimal:
        if series:
            compounded = accumulated_between(series, start, end_snapshot.date)
            if compounded is not None:
                return compounded
        stored = getattr(end_snapshot, "rate_b_accumulated", None) if end_snapshot else None
        if stored is not None:
            return to_decimal(stored)
        return self.fallback_inflation

    def _provisional(
        self,
        label: str,
        start_date: date | None,
        end_date: date,
        benchmark,
        current_totals: PortfolioTotals | None,
    ) -> PerformanceReport:
        start_date = start_date or months_before(end_date, 12)
        target = current_totals.gain_percent if current_totals is not None else ZERO
        value = current_totals.total_value if current_totals is not None else ZERO

        months = max(1, (end_date.year - start_date.year) * 12 + end_date.month - start_date.month)
        step = (Decimal(target) / months).quantize(PRECISION, rounding=ROUND_HALF_UP)
        points = []
        for k in range(1, months + 1):
            point_date = min(months_before(end_date, months - k), end_date)
            points.append(
                PeriodReturn(
                    label=f"{point_date.year:04d}-{point_date.month:02d}",
                    date=point_date,
                    return_percent=step,
                    cumulative_percent=(Decimal(target) * k / months).quantize(
                        PRECISION, rounding=ROUND_HALF_UP
                    ),
                    total_value=(Decimal(value) * k / months).quantize(
                        Decimal("0.01"), rounding=ROUND_HALF_UP
                    ),
                    provisional=True,
                )
            )

        bench = self.fallback_benchmark
        bench_source = "fallback"
        if benchmark:
            compounded = accumulated_between(benchmark, start_date, end_date)
            if compounded is not None:
                bench, bench_source = compounded, "series"

        logger.info(f"No history between {start_date} and {end_date}; returning a projection")
        return PerformanceReport(
            period=label,
            start_date=start_date,
            end_date=end_date,
            accumulated_return=Decimal(target),
            monthly_returns=points,
            annual_returns=[],
            benchmark_accumulated=bench,
            benchmark_source=bench_source,
            benchmark_ratio=ratio(Decimal(target), bench),
            inflation_accumulated=self.fallback_inflation,
            real_return=real_return(Decimal(target), self.fallback_inflation),
            provisional=True,
        )
