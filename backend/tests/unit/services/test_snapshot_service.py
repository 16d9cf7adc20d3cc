"""Tests for the daily snapshot batch and history reads."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from wealth.models import HistoricalSnapshot, Portfolio
from wealth.services.exceptions import PartialBatchFailure
from wealth.services.portfolio.snapshot_service import SnapshotEngine, get_history
from wealth.services.portfolio.valuation_types import BenchmarkRates
from wealth.services.repositories import NotFoundError, SnapshotRepository

SNAPSHOT_DATE = date(2025, 6, 1)


@pytest.fixture
def snapshot_engine(session_factory, benchmark_service):
    return SnapshotEngine(
        session_factory=session_factory, benchmark_service=benchmark_service, max_workers=1
    )


def stored_snapshots(session_factory, portfolio_id):
    session = session_factory()
    try:
        return session.query(HistoricalSnapshot).filter_by(portfolio_id=portfolio_id).all()
    finally:
        session.close()


class TestSnapshotEngine:
    """Test SnapshotEngine.snapshot()."""

    def test_snapshot_writes_totals_and_rates(self, snapshot_engine, session_factory, portfolio, make_position):
        make_position(portfolio, quantity=Decimal("10"), purchase_price=Decimal("100"), current_price=Decimal("120"))

        result = snapshot_engine.snapshot(SNAPSHOT_DATE)

        assert result.succeeded == 1
        assert result.failed == 0
        assert result.results[0].total_value == Decimal("1200.00")

        rows = stored_snapshots(session_factory, portfolio.id)
        assert len(rows) == 1
        assert rows[0].date == SNAPSHOT_DATE
        assert Decimal(str(rows[0].total_value)) == Decimal("1200")
        assert Decimal(str(rows[0].gain_percent)) == Decimal("20")
        assert Decimal(str(rows[0].rate_a_accumulated)) == Decimal("10")
        assert Decimal(str(rows[0].rate_b_accumulated)) == Decimal("4")

    def test_snapshot_updates_portfolio_cache_and_ratio(self, snapshot_engine, session_factory, portfolio, make_position):
        make_position(portfolio, quantity=Decimal("10"), purchase_price=Decimal("100"), current_price=Decimal("120"))

        snapshot_engine.snapshot(SNAPSHOT_DATE)

        session = session_factory()
        stored = session.get(Portfolio, portfolio.id)
        assert Decimal(str(stored.total_value)) == Decimal("1200")
        # 20% gain against a 10% benchmark
        assert Decimal(str(stored.benchmark_ratio)) == Decimal("200")
        session.close()

    def test_rerun_same_date_is_idempotent(self, snapshot_engine, session_factory, portfolio, make_position):
        make_position(portfolio, current_value=Decimal("500"), total_invested=Decimal("400"))

        snapshot_engine.snapshot(SNAPSHOT_DATE)
        first = [(r.total_value, r.gain_percent) for r in stored_snapshots(session_factory, portfolio.id)]
        snapshot_engine.snapshot(SNAPSHOT_DATE)
        second = [(r.total_value, r.gain_percent) for r in stored_snapshots(session_factory, portfolio.id)]

        assert len(second) == 1
        assert first == second

    def test_rerun_overwrites_changed_values(self, snapshot_engine, session_factory, db, portfolio, make_position):
        position = make_position(portfolio, current_value=Decimal("500"), total_invested=Decimal("400"))
        snapshot_engine.snapshot(SNAPSHOT_DATE)

        position.current_value = Decimal("800")
        db.commit()
        snapshot_engine.snapshot(SNAPSHOT_DATE)

        rows = stored_snapshots(session_factory, portfolio.id)
        assert len(rows) == 1
        assert Decimal(str(rows[0].total_value)) == Decimal("800")

    def test_benchmark_fetched_once_per_batch(self, snapshot_engine, db, benchmark_service):
        for name in ("A", "B", "C"):
            db.add(Portfolio(owner_id="owner-1", name=name))
        db.commit()

        result = snapshot_engine.snapshot(SNAPSHOT_DATE)

        assert result.succeeded == 3
        benchmark_service.fetch_accumulated.assert_called_once()

    def test_benchmark_failure_stores_null_rates(self, snapshot_engine, session_factory, benchmark_service, portfolio, make_position):
        make_position(portfolio, current_value=Decimal("500"), total_invested=Decimal("400"))
        benchmark_service.fetch_accumulated.return_value = BenchmarkRates(None, None)

        result = snapshot_engine.snapshot(SNAPSHOT_DATE)

        assert result.succeeded == 1
        row = stored_snapshots(session_factory, portfolio.id)[0]
        assert row.rate_a_accumulated is None
        assert row.rate_b_accumulated is None

    def test_failing_portfolio_does_not_abort_batch(self, snapshot_engine, session_factory, db, portfolio, make_position):
        other = Portfolio(owner_id="owner-2", name="Other")
        db.add(other)
        db.commit()
        make_position(portfolio, current_value=Decimal("500"), total_invested=Decimal("400"))
        make_position(other, current_value=Decimal("100"), total_invested=Decimal("100"))

        original_upsert = SnapshotRepository.upsert

        def flaky_upsert(repo, portfolio_id, snapshot_date, **values):
            if portfolio_id == other.id:
                raise RuntimeError("disk full")
            return original_upsert(repo, portfolio_id, snapshot_date, **values)

        with patch.object(SnapshotRepository, "upsert", autospec=True, side_effect=flaky_upsert):
            result = snapshot_engine.snapshot(SNAPSHOT_DATE)

        assert result.succeeded == 1
        assert result.failed == 1
        assert result.failures == {other.id: "disk full"}
        assert len(stored_snapshots(session_factory, portfolio.id)) == 1
        assert stored_snapshots(session_factory, other.id) == []

        with pytest.raises(PartialBatchFailure) as exc_info:
            result.raise_for_failures()
        assert other.id in exc_info.value.failures

    def test_malformed_positions_fail_that_portfolio(self, snapshot_engine, portfolio):
        with patch(
            "wealth.services.portfolio.snapshot_service.ValuationAggregator.aggregate"
        ) as mock_aggregate:
            mock_aggregate.return_value.skipped = ["7 (Broken)"]
            result = snapshot_engine.snapshot(SNAPSHOT_DATE)

        assert result.failed == 1
        assert "7 (Broken)" in result.results[0].error

    def test_restricted_to_given_portfolios(self, snapshot_engine, db, portfolio):
        db.add(Portfolio(owner_id="owner-1", name="Skipped"))
        db.commit()

        result = snapshot_engine.snapshot(SNAPSHOT_DATE, portfolio_ids=[portfolio.id])

        assert [r.portfolio_id for r in result.results] == [portfolio.id]

    def test_unknown_portfolio_is_a_failure(self, snapshot_engine):
        result = snapshot_engine.snapshot(SNAPSHOT_DATE, portfolio_ids=["missing"])

        assert result.failed == 1
        assert result.results[0].success is False

    def test_no_portfolios(self, snapshot_engine):
        result = snapshot_engine.snapshot(SNAPSHOT_DATE)

        assert result.results == []
        result.raise_for_failures()


class TestGetHistory:
    """Test history reads by period."""

    def _add(self, db, portfolio, day, value):
        SnapshotRepository(db).upsert(
            portfolio.id,
            day,
            total_value=Decimal(value),
            total_invested=Decimal("100"),
            total_gain=Decimal(value) - Decimal("100"),
            gain_percent=Decimal("0"),
        )
        db.commit()

    def test_period_filter_oldest_first(self, db, portfolio):
        self._add(db, portfolio, date(2025, 6, 1), "130")
        self._add(db, portfolio, date(2024, 1, 1), "100")
        self._add(db, portfolio, date(2025, 3, 1), "120")

        history = get_history(db, portfolio.id, "6M", today=date(2025, 6, 15))

        assert [s.date for s in history] == [date(2025, 3, 1), date(2025, 6, 1)]

    def test_all_returns_everything(self, db, portfolio):
        self._add(db, portfolio, date(2024, 1, 1), "100")
        self._add(db, portfolio, date(2025, 3, 1), "120")

        assert len(get_history(db, portfolio.id, "ALL", today=date(2025, 6, 15))) == 2

    def test_unknown_portfolio(self, db):
        with pytest.raises(NotFoundError):
            get_history(db, "missing", "ALL")

    def test_unknown_period(self, db, portfolio):
        with pytest.raises(ValueError):
            get_history(db, portfolio.id, "2W")
