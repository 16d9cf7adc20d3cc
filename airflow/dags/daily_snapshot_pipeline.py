"""
Daily Snapshot Pipeline DAG

Creates end-of-day portfolio snapshots at midnight UTC:
1. Re-convert global assets with the latest currency rates
2. Snapshot every portfolio with accumulated CDI / IPCA rates

Schedule: Daily at midnight UTC (00:00)
"""

import logging
import sys
from datetime import date, datetime, timedelta

from airflow.sdk import dag, task
from dotenv import load_dotenv

# Configure logging
logger = logging.getLogger(__name__)

# Load environment variables from backend .env
load_dotenv("/opt/airflow/backend/.env")

BACKEND_PATH = "/opt/airflow/backend"

default_args = {
    "owner": "wealth_tracker",
    "depends_on_past": False,
    "email_on_failure": False,
    "email_on_retry": False,
    "retries": 3,
    "retry_delay": timedelta(minutes=5),
    "retry_exponential_backoff": True,
}


def _use_backend() -> None:
    """Make the backend package importable inside the Airflow worker."""
    if BACKEND_PATH not in sys.path:
        sys.path.insert(0, BACKEND_PATH)


@dag(
    dag_id="daily_snapshot_pipeline",
    default_args=default_args,
    description="Daily end-of-day portfolio snapshots with benchmark rates",
    schedule="0 0 * * *",  # Midnight UTC daily
    start_date=datetime(2026, 1, 1),
    catchup=False,  # Don't run historical DAGs
    tags=["portfolio", "daily", "snapshots"],
)
def daily_snapshot_pipeline():
    """Define the daily snapshot DAG."""

    @task(task_id="refresh_global_assets")
    def refresh_global_assets() -> dict[str, int]:
        """Re-convert every global asset, writing only material changes."""
        _use_backend()
        from wealth.database import SessionLocal
        from wealth.services.currency.rate_cache import RateCache
        from wealth.services.global_asset_service import GlobalAssetService

        rate_cache = RateCache()
        if not rate_cache.refresh():
            logger.warning("Rate feed unavailable; converting with fallback rates")

        session = SessionLocal()
        try:
            result = GlobalAssetService(session, rate_cache).refresh_reporting_values()
        finally:
            session.close()

        stats = result.to_dict()
        logger.info(
            f"Global assets: {stats['updated']} updated, {stats['unchanged']} unchanged, "
            f"{stats['skipped']} skipped"
        )
        return {key: stats[key] for key in ("updated", "unchanged", "skipped")}

    @task(task_id="create_snapshots")
    def create_snapshots(global_asset_stats: dict[str, int]) -> dict[str, int | str | float]:
        """Create portfolio snapshots for yesterday (running at midnight UTC).

        Fails the task (and lets Airflow retry) when any portfolio failed;
        re-running is safe because snapshots are upserted per date.
        """
        _use_backend()
        from wealth.services.portfolio.snapshot_service import SnapshotEngine

        logger.info(f"Global assets updated before snapshot: {global_asset_stats['updated']}")

        # Running at midnight UTC, snapshot is for yesterday
        snapshot_date = date.today() - timedelta(days=1)
        result = SnapshotEngine().snapshot(snapshot_date)

        for item in result.results:
            if item.success:
                logger.info(f"Snapshot for portfolio {item.portfolio_id}: R$ {item.total_value:,.2f}")

        result.raise_for_failures()

        return {
            "date": str(snapshot_date),
            "created": result.succeeded,
            "elapsed_seconds": round(result.elapsed_seconds, 2),
        }

    # Define task dependencies (TaskFlow API creates implicit deps via argument passing)
    create_snapshots(refresh_global_assets())


# Instantiate the DAG
dag_instance = daily_snapshot_pipeline()
