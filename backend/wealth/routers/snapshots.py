"""Snapshots API router - manual trigger of the daily snapshot batch."""

from fastapi import APIRouter, Depends, Request

from wealth.dependencies.services import get_snapshot_engine
from wealth.rate_limiter import limiter
from wealth.schemas.historical_snapshot import SnapshotRunRequest, SnapshotRunResponse
from wealth.services.portfolio import SnapshotEngine

router = APIRouter(prefix="/api/snapshots", tags=["snapshots"])


@router.post("/run", response_model=SnapshotRunResponse)
@limiter.limit("5/minute")
def run_snapshots(
    request: Request,
    data: SnapshotRunRequest | None = None,
    engine: SnapshotEngine = Depends(get_snapshot_engine),
) -> dict:
    """
    Snapshot every portfolio (or the given ones) for a date.

    Re-running a date overwrites that date's snapshots. Per-portfolio
    failures are reported in the response, never as an error status.
    """
    data = data or SnapshotRunRequest()
    result = engine.snapshot(data.snapshot_date, data.portfolio_ids)
    benchmark = result.benchmark
    return {
        "snapshot_date": result.snapshot_date,
        "succeeded": result.succeeded,
        "failed": result.failed,
        "elapsed_seconds": result.elapsed_seconds,
        "rate_a_accumulated": benchmark.rate_a_accumulated if benchmark else None,
        "rate_b_accumulated": benchmark.rate_b_accumulated if benchmark else None,
        "results": result.results,
    }
