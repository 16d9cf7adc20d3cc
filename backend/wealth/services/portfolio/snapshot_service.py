"""Daily historical snapshots of every portfolio."""

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from wealth.config import settings
from wealth.services.analytics.performance_analyzer import ratio, resolve_period
from wealth.services.exceptions import ValuationError
from wealth.services.portfolio.benchmark_service import BenchmarkService
from wealth.services.portfolio.valuation_service import ValuationAggregator
from wealth.services.portfolio.valuation_types import (
    BenchmarkRates,
    PortfolioSnapshotResult,
    SnapshotBatchResult,
)
from wealth.services.repositories import (
    PortfolioRepository,
    PositionRepository,
    SnapshotRepository,
)

logger = logging.getLogger(__name__)


def get_history(
    db: Session,
    portfolio_id: str,
    period: str | None = None,
    today: date | None = None,
    start: date | None = None,
    end: date | None = None,
):
    """Snapshots of a portfolio within a period, oldest first.

    Raises:
        NotFoundError: If the portfolio does not exist
        ValueError: If the period is unknown
    """
    PortfolioRepository(db).get_by_id(portfolio_id)
    start_date, end_date = resolve_period(period, today or date.today(), start, end)
    return SnapshotRepository(db).find_range(portfolio_id, start_date, end_date)


class SnapshotEngine:
    """Idempotent daily snapshot batch.

    The benchmark series are fetched once per batch; portfolios are then
    processed by a bounded worker pool, each in its own session and
    transaction. A failing portfolio is recorded and never aborts the batch.
    Re-running a date overwrites that date's rows.

    Usage:
        engine = SnapshotEngine()
        result = engine.snapshot(date.today())
        result.raise_for_failures()  # when the caller must fail loudly
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        benchmark_service: BenchmarkService | None = None,
        max_workers: int | None = None,
    ) -> None:
        if session_factory is None:
            from wealth.database import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory
        self._benchmark = benchmark_service or BenchmarkService()
        self.max_workers = max_workers or settings.snapshot_max_workers

    def snapshot(
        self, as_of_date: date | None = None, portfolio_ids: list[str] | None = None
    ) -> SnapshotBatchResult:
        """Snapshot every portfolio (or the given ones) for a date.

        Args:
            as_of_date: Snapshot date (defaults to today)
            portfolio_ids: Restrict the batch to these portfolios

        Returns:
            SnapshotBatchResult with one result per portfolio
        """
        started = time.perf_counter()
        as_of_date = as_of_date or date.today()

        if portfolio_ids is None:
            db = self._session_factory()
            try:
                portfolio_ids = PortfolioRepository(db).find_all_ids()
            finally:
                db.close()

        benchmark = self._benchmark.fetch_accumulated()
        if not benchmark.available:
            logger.warning(f"Snapshots for {as_of_date} will store NULL benchmark rates")

        batch = SnapshotBatchResult(snapshot_date=as_of_date, benchmark=benchmark)
        if portfolio_ids:
            workers = max(1, min(self.max_workers, len(portfolio_ids)))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    executor.submit(self._snapshot_portfolio, pid, as_of_date, benchmark): pid
                    for pid in portfolio_ids
                }
                for future in as_completed(futures):
                    batch.results.append(future.result())

        batch.results.sort(key=lambda r: r.portfolio_id)
        batch.elapsed_seconds = time.perf_counter() - started
        logger.info(
            f"Snapshot batch for {as_of_date}: {batch.succeeded} succeeded, "
            f"{batch.failed} failed in {batch.elapsed_seconds:.2f}s"
        )
        return batch

    def _snapshot_portfolio(
        self, portfolio_id: str, as_of_date: date, benchmark: BenchmarkRates
    ) -> PortfolioSnapshotResult:
        db = self._session_factory()
        try:
            portfolio = PortfolioRepository(db).get_by_id(portfolio_id)
            positions = PositionRepository(db).find_by_portfolio(portfolio_id)
            totals = ValuationAggregator.aggregate(positions)
            if totals.skipped:
                raise ValuationError(f"malformed positions: {', '.join(totals.skipped)}")

            SnapshotRepository(db).upsert(
                portfolio_id,
                as_of_date,
                total_value=totals.total_value,
                total_invested=totals.total_invested,
                total_gain=totals.total_gain,
                gain_percent=totals.gain_percent,
                rate_a_accumulated=benchmark.rate_a_accumulated,
                rate_b_accumulated=benchmark.rate_b_accumulated,
            )

            portfolio.total_value = totals.total_value
            portfolio.total_invested = totals.total_invested
            portfolio.total_gain = totals.total_gain
            portfolio.gain_percent = totals.gain_percent
            if benchmark.available:
                portfolio.benchmark_ratio = ratio(
                    totals.gain_percent, Decimal(benchmark.rate_a_accumulated)
                )

            db.commit()
            return PortfolioSnapshotResult(
                portfolio_id=portfolio_id, success=True, total_value=totals.total_value
            )
        except Exception as e:
            db.rollback()
            logger.exception(f"Snapshot failed for portfolio {portfolio_id}")
            return PortfolioSnapshotResult(portfolio_id=portfolio_id, success=False, error=str(e))
        finally:
            db.close()
