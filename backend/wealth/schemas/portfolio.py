"""Pydantic schemas for Portfolio model and valuation results."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PortfolioCreate(BaseModel):
    """Schema for creating a new Portfolio."""

    owner_id: str = Field(..., min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=100)


class Portfolio(BaseModel):
    """Schema for Portfolio responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    total_value: Decimal
    total_invested: Decimal
    total_gain: Decimal
    gain_percent: Decimal
    benchmark_ratio: Decimal
    created_at: datetime
    updated_at: datetime


class PortfolioTotals(BaseModel):
    """Current totals of a portfolio, recomputed from its positions."""

    model_config = ConfigDict(from_attributes=True)

    total_value: Decimal
    total_invested: Decimal
    total_gain: Decimal
    gain_percent: Decimal
    position_count: int
    skipped: list[str] = []


class AllocationSlice(BaseModel):
    """Value held in one instrument type."""

    model_config = ConfigDict(from_attributes=True)

    instrument_type: str
    value: Decimal
    weight: Decimal = Field(..., description="Percent of the portfolio value")
    position_count: int


class WealthTotals(BaseModel):
    """Investments and global assets of an owner."""

    model_config = ConfigDict(from_attributes=True)

    investments_value: Decimal
    investments_invested: Decimal
    investments_gain: Decimal
    investments_gain_percent: Decimal
    global_value: Decimal
    total_wealth: Decimal
    position_count: int
    global_asset_count: int
    skipped: list[str] = []
