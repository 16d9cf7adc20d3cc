"""Portfolios API router - totals, history and analytics."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from wealth.constants import Period
from wealth.database import get_db
from wealth.dependencies.services import (
    get_benchmark_service,
    get_quote_client,
    get_rate_cache,
)
from wealth.schemas.analytics import CoverageReport, PerformanceReport, SensitivityReport
from wealth.schemas.historical_snapshot import HistoricalSnapshot
from wealth.schemas.portfolio import AllocationSlice, Portfolio, PortfolioCreate, PortfolioTotals
from wealth.schemas.position import Position
from wealth.services.analytics import (
    CoverageCalculator,
    PerformanceAnalyzer,
    SensitivityAnalyzer,
    resolve_period,
)
from wealth.services.currency.rate_cache import RateCache
from wealth.services.global_asset_service import GlobalAssetService
from wealth.services.market_data.quote_analysis_client import QuoteAnalysisClient
from wealth.services.portfolio import (
    BenchmarkService,
    PortfolioValuationService,
    ValuationAggregator,
    get_history,
)
from wealth.services.repositories import (
    GlobalAssetRepository,
    NotFoundError,
    PortfolioRepository,
    PositionRepository,
    SnapshotRepository,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portfolios", tags=["portfolios"])

# Longest rate A series requested for a performance comparison (about 5 years)
MAX_BENCHMARK_POINTS = 1260


def trading_days(calendar_days: int) -> int:
    """Daily rate A entries covering a calendar span, with a little margin.

    The series only has business days (about 252 a year); the analyzer
    trims whatever falls before the window.
    """
    return min(MAX_BENCHMARK_POINTS, calendar_days * 252 // 365 + 10)


def _get_portfolio_or_404(db: Session, portfolio_id: str):
    try:
        return PortfolioRepository(db).get_by_id(portfolio_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("", response_model=list[Portfolio])
async def list_portfolios(
    owner_id: str = Query(..., description="Owner of the portfolios"),
    db: Session = Depends(get_db),
):
    """List an owner's portfolios."""
    return PortfolioRepository(db).find_by_owner(owner_id)


@router.post("", response_model=Portfolio, status_code=status.HTTP_201_CREATED)
async def create_portfolio(data: PortfolioCreate, db: Session = Depends(get_db)):
    """Create an empty portfolio."""
    try:
        portfolio = PortfolioRepository(db).create(data.owner_id, data.name)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Could not save portfolio {data.name}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not save portfolio",
        ) from e
    return portfolio


@router.get("/{portfolio_id}", response_model=Portfolio)
async def get_portfolio(portfolio_id: str, db: Session = Depends(get_db)):
    return _get_portfolio_or_404(db, portfolio_id)


@router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio(portfolio_id: str, db: Session = Depends(get_db)) -> None:
    """Delete a portfolio with its positions and history."""
    portfolio = _get_portfolio_or_404(db, portfolio_id)
    PortfolioRepository(db).delete(portfolio)
    db.commit()


@router.get("/{portfolio_id}/positions", response_model=list[Position])
async def list_positions(portfolio_id: str, db: Session = Depends(get_db)):
    _get_portfolio_or_404(db, portfolio_id)
    return PositionRepository(db).find_by_portfolio(portfolio_id)


@router.get("/{portfolio_id}/totals", response_model=PortfolioTotals)
async def get_portfolio_totals(portfolio_id: str, db: Session = Depends(get_db)):
    """Current totals, re-aggregated if the cached ones have drifted."""
    try:
        return PortfolioValuationService(db).get_portfolio_totals(portfolio_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{portfolio_id}/history", response_model=list[HistoricalSnapshot])
async def get_portfolio_history(
    portfolio_id: str,
    period: str = Query(Period.ALL, description="3M, 6M, 12M, YTD or ALL"),
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """Daily snapshots of a portfolio within a period, oldest first."""
    try:
        return get_history(db, portfolio_id, period, start=start_date, end=end_date)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/{portfolio_id}/performance", response_model=PerformanceReport)
def get_portfolio_performance(
    portfolio_id: str,
    period: str = Query(Period.TWELVE_MONTHS, description="3M, 6M, 12M, YTD or ALL"),
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    benchmark_service: BenchmarkService = Depends(get_benchmark_service),
):
    """Accumulated, monthly and annual returns against the benchmark."""
    _get_portfolio_or_404(db, portfolio_id)
    today = date.today()
    try:
        period_start, period_end = resolve_period(period, today, start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    snapshots = SnapshotRepository(db).find_range(portfolio_id, end_date=period_end)
    totals = PortfolioValuationService(db).get_portfolio_totals(portfolio_id)

    first_date = period_start or (snapshots[0].date if snapshots else period_end)
    # The feed counts entries back from today, not from the period end
    days = max(1, (max(today, period_end) - first_date).days)
    benchmark = benchmark_service.fetch_rate_a_series(trading_days(days))
    inflation = benchmark_service.fetch_rate_b_series(max(1, days // 30 + 1))

    return PerformanceAnalyzer().analyze(
        snapshots,
        period,
        today,
        benchmark=benchmark,
        current_totals=totals,
        inflation=inflation,
        start=start_date,
        end=end_date,
    )


@router.get("/{portfolio_id}/sensitivity", response_model=SensitivityReport)
def get_portfolio_sensitivity(
    portfolio_id: str,
    measured: bool = Query(True, description="Fetch measured volatility from the quote feed"),
    db: Session = Depends(get_db),
    quote_client: QuoteAnalysisClient = Depends(get_quote_client),
):
    """Per-asset contribution to the portfolio return."""
    _get_portfolio_or_404(db, portfolio_id)
    positions = PositionRepository(db).find_by_portfolio(portfolio_id)
    totals = ValuationAggregator.aggregate(positions)

    volatility = {}
    if measured:
        volatility = quote_client.get_volatilities([p.ticker for p in positions if p.ticker])

    analyzer = SensitivityAnalyzer()
    assets = analyzer.analyze(positions, totals.total_value, totals.total_invested, volatility)
    return {"assets": assets, **analyzer.summarize(assets)}


@router.get("/{portfolio_id}/coverage", response_model=CoverageReport)
def get_portfolio_coverage(
    portfolio_id: str,
    view: str = Query("investments", pattern="^(investments|wealth)$"),
    db: Session = Depends(get_db),
    rate_cache: RateCache = Depends(get_rate_cache),
):
    """Deposit insurance coverage of the portfolio's covered instruments.

    view=investments measures coverage against the portfolio value,
    view=wealth against the owner's total wealth.
    """
    portfolio = _get_portfolio_or_404(db, portfolio_id)
    positions = PositionRepository(db).find_by_portfolio(portfolio_id)

    if view == "wealth":
        GlobalAssetService(db, rate_cache).refresh_reporting_values(portfolio.owner_id)
        wealth = ValuationAggregator.combined_wealth(
            PositionRepository(db).find_by_owner(portfolio.owner_id),
            GlobalAssetRepository(db).find_by_owner(portfolio.owner_id),
        )
        total_wealth = wealth.total_wealth
    else:
        total_wealth = ValuationAggregator.aggregate(positions).total_value

    return CoverageCalculator().coverage(positions, total_wealth=total_wealth)


@router.get("/{portfolio_id}/allocation", response_model=list[AllocationSlice])
async def get_portfolio_allocation(portfolio_id: str, db: Session = Depends(get_db)):
    """Current value by instrument type."""
    _get_portfolio_or_404(db, portfolio_id)
    return ValuationAggregator.allocation(PositionRepository(db).find_by_portfolio(portfolio_id))
