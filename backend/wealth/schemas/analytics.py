"""Pydantic schemas for analytics responses."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class PeriodReturn(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    date: date
    return_percent: Decimal
    cumulative_percent: Decimal
    total_value: Decimal
    provisional: bool = False


class PerformanceReport(BaseModel):
    """Returns over a period; provisional marks projected (not recorded) data."""

    model_config = ConfigDict(from_attributes=True)

    period: str
    start_date: date | None
    end_date: date
    accumulated_return: Decimal
    monthly_returns: list[PeriodReturn]
    annual_returns: list[PeriodReturn]
    benchmark_accumulated: Decimal
    benchmark_source: str
    benchmark_ratio: Decimal
    inflation_accumulated: Decimal
    real_return: Decimal
    provisional: bool


class AssetContribution(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position_id: int | None
    name: str
    ticker: str | None
    instrument_type: str | None
    value: Decimal
    invested: Decimal
    weight: Decimal
    contribution: Decimal
    impact: str
    volatility: Decimal
    volatility_source: str


class SensitivityReport(BaseModel):
    """Per-asset contributions, largest movers first."""

    assets: list[AssetContribution]
    positive_total: Decimal
    negative_total: Decimal
    net_total: Decimal
    asset_count: int


class IssuerCoverage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    issuer: str
    total: Decimal
    covered: Decimal
    uncovered: Decimal
    position_count: int


class CoverageReport(BaseModel):
    """Deposit insurance exposure."""

    model_config = ConfigDict(from_attributes=True)

    covered_value: Decimal
    uncovered_value: Decimal
    eligible_value: Decimal
    percent: Decimal
    remaining_limit: Decimal
    insurance_limit: Decimal
    total_limit: Decimal
    by_issuer: list[IssuerCoverage]


class RateEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    currency: str
    rate: Decimal
    fetched_at: datetime | None
    source: str
    stale: bool


class RatesResponse(BaseModel):
    """Current rate table in reporting currency per foreign unit."""

    reporting_currency: str
    source: str | None
    fetched_at: datetime | None
    stale: bool
    rates: list[RateEntry]
