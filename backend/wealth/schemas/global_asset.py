"""Pydantic schemas for GlobalAsset model."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class GlobalAssetCreate(BaseModel):
    """Schema for creating a new GlobalAsset."""

    owner_id: str = Field(..., min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=200)
    category: str = "outros"
    currency: str = Field(..., min_length=3, max_length=3)
    original_value: Decimal = Field(..., ge=0)
    notes: str | None = None


class GlobalAssetUpdate(BaseModel):
    """Schema for updating an existing GlobalAsset."""

    name: str | None = Field(None, min_length=1, max_length=200)
    category: str | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    original_value: Decimal | None = Field(None, ge=0)
    notes: str | None = None


class GlobalAsset(BaseModel):
    """Schema for GlobalAsset responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    category: str
    currency: str
    original_value: Decimal
    value_reporting: Decimal
    exchange_rate: Decimal
    notes: str | None
    created_at: datetime
    updated_at: datetime


class ConsolidationResult(BaseModel):
    """Outcome of re-converting global assets."""

    model_config = ConfigDict(from_attributes=True)

    updated: list[str]
    unchanged: list[str]
    skipped: list[str]
