"""Global assets API router."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies.services import get_rate_cache
from wealth.schemas.global_asset import (
    ConsolidationResult,
    GlobalAsset,
    GlobalAssetCreate,
    GlobalAssetUpdate,
)
from wealth.services.currency.rate_cache import RateCache
from wealth.services.exceptions import StaleRateError
from wealth.services.global_asset_service import GlobalAssetService
from wealth.services.repositories import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/global-assets", tags=["global-assets"])


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, StaleRateError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.error(f"Global asset operation failed: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save global asset"
    )


@router.get("", response_model=list[GlobalAsset])
def list_global_assets(
    owner_id: str = Query(...),
    category: str | None = None,
    db: Session = Depends(get_db),
    rate_cache: RateCache = Depends(get_rate_cache),
):
    """List an owner's global assets with up-to-date reporting values."""
    service = GlobalAssetService(db, rate_cache)
    service.refresh_reporting_values(owner_id)
    return service.list_assets(owner_id, category)


@router.post("", response_model=GlobalAsset, status_code=status.HTTP_201_CREATED)
def create_global_asset(
    data: GlobalAssetCreate,
    db: Session = Depends(get_db),
    rate_cache: RateCache = Depends(get_rate_cache),
):
    payload = data.model_dump()
    owner_id = payload.pop("owner_id")
    try:
        return GlobalAssetService(db, rate_cache).create_asset(owner_id, **payload)
    except Exception as e:
        raise _http_error(e) from e


@router.patch("/{asset_id}", response_model=GlobalAsset)
def update_global_asset(
    asset_id: str,
    data: GlobalAssetUpdate,
    db: Session = Depends(get_db),
    rate_cache: RateCache = Depends(get_rate_cache),
):
    try:
        return GlobalAssetService(db, rate_cache).update_asset(
            asset_id, **data.model_dump(exclude_unset=True)
        )
    except Exception as e:
        raise _http_error(e) from e


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_global_asset(
    asset_id: str,
    db: Session = Depends(get_db),
    rate_cache: RateCache = Depends(get_rate_cache),
) -> None:
    try:
        GlobalAssetService(db, rate_cache).delete_asset(asset_id)
    except Exception as e:
        raise _http_error(e) from e


@router.post("/refresh", response_model=ConsolidationResult)
def refresh_global_assets(
    owner_id: str | None = None,
    db: Session = Depends(get_db),
    rate_cache: RateCache = Depends(get_rate_cache),
):
    """Re-convert global assets, writing only material changes."""
    return GlobalAssetService(db, rate_cache).refresh_reporting_values(owner_id)
