"""Pydantic schemas for Position model and position operations."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PositionBase(BaseModel):
    """Base Position schema with common fields."""

    name: str = Field(..., min_length=1, max_length=200)
    instrument_type: str = Field(..., min_length=1, max_length=60)
    ticker: str | None = Field(None, max_length=20)
    quantity: Decimal | None = Field(None, ge=0)
    purchase_price: Decimal | None = Field(None, ge=0)
    current_price: Decimal | None = Field(None, ge=0)
    currency: str | None = Field(None, min_length=3, max_length=3)
    maturity_date: date | None = None


class PositionCreate(PositionBase):
    """Schema for creating a new Position."""

    portfolio_id: str
    current_value: Decimal | None = Field(None, ge=0)
    total_invested: Decimal | None = Field(None, ge=0)
    movement_date: date | None = None


class PositionUpdate(BaseModel):
    """Schema for updating an existing Position. Only set fields change."""

    name: str | None = Field(None, min_length=1, max_length=200)
    instrument_type: str | None = Field(None, min_length=1, max_length=60)
    ticker: str | None = Field(None, max_length=20)
    quantity: Decimal | None = Field(None, ge=0)
    purchase_price: Decimal | None = Field(None, ge=0)
    current_price: Decimal | None = Field(None, ge=0)
    current_value: Decimal | None = Field(None, ge=0)
    total_invested: Decimal | None = Field(None, ge=0)
    currency: str | None = Field(None, min_length=3, max_length=3)
    maturity_date: date | None = None


class Position(PositionBase):
    """Schema for Position responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    portfolio_id: str
    currency: str
    current_value: Decimal
    total_invested: Decimal
    gain_percent: Decimal
    source: str
    created_at: datetime
    updated_at: datetime


class ContributionRequest(BaseModel):
    """Money added to a position: quantity and unit price, or an amount."""

    quantity: Decimal | None = Field(None, gt=0)
    unit_price: Decimal | None = Field(None, ge=0)
    amount: Decimal | None = Field(None, gt=0)
    movement_date: date | None = None
    notes: str | None = None


class RedemptionRequest(BaseModel):
    """Money taken out of a position: a quantity or an amount."""

    quantity: Decimal | None = Field(None, gt=0)
    amount: Decimal | None = Field(None, gt=0)
    movement_date: date | None = None
    notes: str | None = None


class TransferRequest(BaseModel):
    """Move a position to another portfolio."""

    target_portfolio_id: str
    movement_date: date | None = None


class EventRequest(BaseModel):
    """Corporate or cash event applied to a position."""

    type: str = Field(..., description="bonificacao, desdobramento, grupamento, amortizacao, dividendo, jcp, rendimento")
    quantity: Decimal | None = Field(None, gt=0)
    ratio: Decimal | None = Field(None, gt=0)
    amount: Decimal | None = Field(None, gt=0)
    event_date: date | None = None
    notes: str | None = None


class Movement(BaseModel):
    """Schema for ledger movement responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    portfolio_id: str | None
    position_id: int | None
    type: str
    asset_name: str
    ticker: str | None
    asset_type: str | None
    quantity: Decimal
    unit_price: Decimal
    total_value: Decimal
    notes: str | None
    movement_date: date
