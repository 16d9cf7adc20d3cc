"""Pydantic schemas for HistoricalSnapshot model and snapshot batches."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class HistoricalSnapshot(BaseModel):
    """Schema for HistoricalSnapshot responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    portfolio_id: str
    date: date
    total_value: Decimal
    total_invested: Decimal
    total_gain: Decimal
    gain_percent: Decimal
    rate_a_accumulated: Decimal | None = Field(None, description="Accumulated CDI, percent")
    rate_b_accumulated: Decimal | None = Field(None, description="Accumulated IPCA, percent")
    created_at: datetime


class SnapshotRunRequest(BaseModel):
    """Parameters of a manual snapshot run."""

    snapshot_date: date | None = None
    portfolio_ids: list[str] | None = None


class PortfolioSnapshotResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    portfolio_id: str
    success: bool
    error: str | None = None
    total_value: Decimal | None = None


class SnapshotRunResponse(BaseModel):
    """Outcome of a snapshot batch."""

    snapshot_date: date
    succeeded: int
    failed: int
    elapsed_seconds: float
    rate_a_accumulated: Decimal | None
    rate_b_accumulated: Decimal | None
    results: list[PortfolioSnapshotResult]
