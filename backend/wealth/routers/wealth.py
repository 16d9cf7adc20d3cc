"""Combined wealth API router."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies.services import get_rate_cache
from wealth.schemas.portfolio import WealthTotals
from wealth.services.currency.rate_cache import RateCache
from wealth.services.global_asset_service import GlobalAssetService
from wealth.services.portfolio import ValuationAggregator
from wealth.services.repositories import GlobalAssetRepository, PositionRepository

router = APIRouter(prefix="/api/wealth", tags=["wealth"])


@router.get("", response_model=WealthTotals)
def get_wealth(
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
    rate_cache: RateCache = Depends(get_rate_cache),
):
    """Investments and global assets of an owner, tracked separately and combined."""
    GlobalAssetService(db, rate_cache).refresh_reporting_values(owner_id)
    return ValuationAggregator.combined_wealth(
        PositionRepository(db).find_by_owner(owner_id),
        GlobalAssetRepository(db).find_by_owner(owner_id),
    )
