"""Tests for PerformanceAnalyzer and the period return helpers."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from wealth.services.analytics.performance_analyzer import (
    PerformanceAnalyzer,
    months_before,
    period_return,
    ratio,
    real_return,
    resolve_period,
)
from wealth.services.market_data.benchmark_client import BenchmarkPoint
from wealth.services.portfolio.valuation_types import PortfolioTotals


def snap(day, value, invested, **kwargs):
    value, invested = Decimal(value), Decimal(invested)
    return SimpleNamespace(
        date=day, total_value=value, total_invested=invested, total_gain=value - invested, **kwargs
    )


@pytest.fixture
def history():
    """Jan flat, Feb +10%, Mar +500 contributed and +100 gained."""
    return [
        snap(date(2025, 3, 31), "1700", "1500"),
        snap(date(2025, 1, 31), "1000", "1000"),
        snap(date(2025, 2, 28), "1100", "1000"),
    ]


@pytest.fixture
def analyzer():
    return PerformanceAnalyzer(fallback_benchmark=Decimal("5"), fallback_inflation=Decimal("0"))


class TestHelpers:
    """Test date and ratio helpers."""

    def test_months_before_clamps_to_month_end(self):
        assert months_before(date(2025, 3, 31), 1) == date(2025, 2, 28)
        assert months_before(date(2025, 1, 15), 12) == date(2024, 1, 15)

    def test_resolve_period(self):
        today = date(2025, 6, 15)
        assert resolve_period("3M", today) == (date(2025, 3, 15), today)
        assert resolve_period("ytd", today) == (date(2025, 1, 1), today)
        assert resolve_period("ALL", today) == (None, today)
        assert resolve_period("12M", today, start=date(2025, 2, 1)) == (date(2025, 2, 1), today)

    def test_resolve_unknown_period(self):
        with pytest.raises(ValueError):
            resolve_period("5Y", date(2025, 6, 15))

    def test_period_return_from_endpoint_totals(self):
        """Gain earned between the snapshots over capital invested at the end."""
        previous = snap(date(2025, 2, 28), "1100", "1000")
        current = snap(date(2025, 3, 31), "1700", "1500")
        assert period_return(previous, current) == Decimal("6.6667")

    def test_period_return_from_first_snapshot_is_lifetime_gain(self):
        previous = snap(date(2025, 1, 31), "1000", "1000")
        current = snap(date(2025, 3, 31), "1700", "1500")
        assert period_return(previous, current) == Decimal("13.3333")

    def test_period_return_with_nothing_invested(self):
        previous = snap(date(2025, 1, 31), "0", "0")
        current = snap(date(2025, 2, 28), "0", "0")
        assert period_return(previous, current) == Decimal("0")

    def test_ratio_guards_near_zero(self):
        assert ratio(Decimal("1"), Decimal("0")) == Decimal("0")
        assert ratio(Decimal("1"), Decimal("1e-10")) == Decimal("0")
        assert ratio(Decimal("12"), Decimal("10")) == Decimal("120.0000")

    def test_real_return(self):
        assert real_return(Decimal("10"), Decimal("4")) == Decimal("5.7692")


class TestPerformanceAnalyzer:
    """Test PerformanceAnalyzer.analyze()."""

    def test_all_uses_lifetime_gain(self, analyzer, history):
        report = analyzer.analyze(history, "ALL", date(2025, 4, 10))

        assert report.accumulated_return == Decimal("13.3333")
        assert report.provisional is False
        assert report.start_date == date(2025, 1, 31)

    def test_monthly_returns_against_previous_month_end(self, analyzer, history):
        report = analyzer.analyze(history, "ALL", date(2025, 4, 10))

        assert [m.label for m in report.monthly_returns] == ["2025-01", "2025-02", "2025-03"]
        assert [m.return_percent for m in report.monthly_returns] == [
            Decimal("0"),
            Decimal("10.0000"),
            Decimal("6.6667"),
        ]
        assert report.monthly_returns[-1].cumulative_percent == Decimal("13.3333")

    def test_annual_returns(self, analyzer, history):
        report = analyzer.analyze(history, "ALL", date(2025, 4, 10))

        assert len(report.annual_returns) == 1
        assert report.annual_returns[0].label == "2025"
        assert report.annual_returns[0].return_percent == Decimal("13.3333")

    def test_explicit_period_uses_endpoints(self, analyzer, history):
        report = analyzer.analyze(
            history, None, date(2025, 4, 10), start=date(2025, 2, 1), end=date(2025, 3, 31)
        )

        assert report.period == "CUSTOM"
        assert report.accumulated_return == Decimal("6.6667")
        # February is measured against January's close, before the period
        assert report.monthly_returns[0].return_percent == Decimal("10.0000")

    def test_latest_snapshot_per_month(self, analyzer):
        snapshots = [
            snap(date(2025, 1, 10), "1000", "1000"),
            snap(date(2025, 1, 31), "1050", "1000"),
            snap(date(2025, 2, 28), "1050", "1000"),
        ]

        report = analyzer.analyze(snapshots, "ALL", date(2025, 3, 1))

        assert [m.date for m in report.monthly_returns] == [date(2025, 1, 31), date(2025, 2, 28)]
        assert report.monthly_returns[1].return_percent == Decimal("0")

    def test_benchmark_from_series_within_window(self, analyzer, history):
        series = [
            BenchmarkPoint(date(2025, 2, 15), Decimal("0.5")),
            BenchmarkPoint(date(2025, 3, 10), Decimal("0.01")),
            BenchmarkPoint(date(2025, 3, 20), Decimal("0.01")),
        ]

        report = analyzer.analyze(
            history, None, date(2025, 4, 10), benchmark=series, start=date(2025, 2, 1), end=date(2025, 3, 31)
        )

        assert report.benchmark_source == "series"
        assert report.benchmark_accumulated == Decimal("2.010000")
        assert report.benchmark_ratio == Decimal("331.6766")

    def test_lifetime_benchmark_starts_with_history(self, analyzer, history):
        """Series points before the first snapshot are not compounded."""
        series = [
            BenchmarkPoint(date(2024, 12, 2), Decimal("0.9")),
            BenchmarkPoint(date(2025, 1, 31), Decimal("0.9")),
            BenchmarkPoint(date(2025, 2, 15), Decimal("0.5")),
            BenchmarkPoint(date(2025, 3, 10), Decimal("0.01")),
            BenchmarkPoint(date(2025, 3, 20), Decimal("0.01")),
        ]

        report = analyzer.analyze(history, "ALL", date(2025, 4, 10), benchmark=series)

        assert report.benchmark_source == "series"
        assert report.benchmark_accumulated == Decimal("53.015000")

    def test_single_snapshot_ignores_series(self, analyzer):
        snapshots = [snap(date(2025, 3, 31), "1100", "1000", rate_a_accumulated=Decimal("8"))]
        series = [BenchmarkPoint(date(2025, 3, 10), Decimal("0.5"))]

        report = analyzer.analyze(snapshots, "ALL", date(2025, 4, 10), benchmark=series)

        assert report.benchmark_source == "snapshot"
        assert report.benchmark_accumulated == Decimal("8")

    def test_benchmark_from_stored_snapshot_rate(self, analyzer):
        snapshots = [snap(date(2025, 3, 31), "1100", "1000", rate_a_accumulated=Decimal("8"))]

        report = analyzer.analyze(snapshots, "ALL", date(2025, 4, 10))

        assert report.benchmark_source == "snapshot"
        assert report.benchmark_ratio == Decimal("125.0000")

    def test_benchmark_fallback(self, analyzer, history):
        report = analyzer.analyze(history, "ALL", date(2025, 4, 10))

        assert report.benchmark_source == "fallback"
        assert report.benchmark_accumulated == Decimal("5")

    def test_zero_benchmark_gives_zero_ratio(self, history):
        analyzer = PerformanceAnalyzer(fallback_benchmark=Decimal("0"))
        assert analyzer.analyze(history, "ALL", date(2025, 4, 10)).benchmark_ratio == Decimal("0")

    def test_real_return_uses_inflation(self, history):
        analyzer = PerformanceAnalyzer(fallback_benchmark=Decimal("5"), fallback_inflation=Decimal("4"))

        report = analyzer.analyze(history, "ALL", date(2025, 4, 10))

        assert report.inflation_accumulated == Decimal("4")
        assert report.real_return == real_return(Decimal("13.3333"), Decimal("4"))

    def test_no_history_gives_provisional_projection(self, analyzer):
        totals = PortfolioTotals(
            total_value=Decimal("1200"),
            total_invested=Decimal("1000"),
            total_gain=Decimal("200"),
            gain_percent=Decimal("20"),
        )

        report = analyzer.analyze([], "12M", date(2025, 6, 15), current_totals=totals)

        assert report.provisional is True
        assert report.accumulated_return == Decimal("20")
        assert len(report.monthly_returns) == 12
        assert all(point.provisional for point in report.monthly_returns)
        assert report.monthly_returns[-1].cumulative_percent == Decimal("20.0000")
        assert report.monthly_returns[-1].total_value == Decimal("1200.00")
        assert report.monthly_returns[0].return_percent == Decimal("1.6667")

    def test_history_outside_period_is_provisional(self, analyzer):
        snapshots = [snap(date(2023, 1, 31), "1000", "1000")]

        report = analyzer.analyze(snapshots, "3M", date(2025, 6, 15))

        assert report.provisional is True
        assert report.accumulated_return == Decimal("0")
