"""Positions API router - edits that re-aggregate the owning portfolio."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.schemas.common import MessageResponse
from wealth.schemas.position import (
    ContributionRequest,
    EventRequest,
    Movement,
    Position,
    PositionCreate,
    PositionUpdate,
    RedemptionRequest,
    TransferRequest,
)
from wealth.services.corporate_actions_service import CorporateActionsService
from wealth.services.portfolio import PositionService
from wealth.services.repositories import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/positions", tags=["positions"])


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.error(f"Position operation failed: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save position"
    )


@router.post("", response_model=Position, status_code=status.HTTP_201_CREATED)
async def create_position(data: PositionCreate, db: Session = Depends(get_db)):
    """Add a position to a portfolio."""
    payload = data.model_dump()
    portfolio_id = payload.pop("portfolio_id")
    try:
        return PositionService(db).create_position(portfolio_id, **payload)
    except Exception as e:
        raise _http_error(e) from e


@router.patch("/{position_id}", response_model=Position)
async def update_position(position_id: int, data: PositionUpdate, db: Session = Depends(get_db)):
    """Edit a position. Only fields present in the body change."""
    try:
        return PositionService(db).update_position(position_id, **data.model_dump(exclude_unset=True))
    except Exception as e:
        raise _http_error(e) from e


@router.delete("/{position_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_position(position_id: int, db: Session = Depends(get_db)) -> None:
    try:
        PositionService(db).delete_position(position_id)
    except Exception as e:
        raise _http_error(e) from e


@router.post("/{position_id}/contributions", response_model=Position)
async def add_contribution(
    position_id: int, data: ContributionRequest, db: Session = Depends(get_db)
):
    """Add money to a position (aplicação)."""
    try:
        return PositionService(db).add_contribution(position_id, **data.model_dump())
    except Exception as e:
        raise _http_error(e) from e


@router.post("/{position_id}/redemptions", response_model=Position | MessageResponse)
async def redeem(position_id: int, data: RedemptionRequest, db: Session = Depends(get_db)):
    """Take money out of a position (resgate). Full redemptions remove it."""
    try:
        position = PositionService(db).redeem(position_id, **data.model_dump())
    except Exception as e:
        raise _http_error(e) from e
    if position is None:
        return MessageResponse(message=f"Position {position_id} fully redeemed")
    return position


@router.post("/{position_id}/transfer", response_model=Position)
async def transfer_position(
    position_id: int, data: TransferRequest, db: Session = Depends(get_db)
):
    """Move a position to another portfolio."""
    try:
        return PositionService(db).transfer(
            position_id, data.target_portfolio_id, movement_date=data.movement_date
        )
    except Exception as e:
        raise _http_error(e) from e


@router.post("/{position_id}/events", response_model=Movement, status_code=status.HTTP_201_CREATED)
async def apply_event(position_id: int, data: EventRequest, db: Session = Depends(get_db)):
    """Apply a corporate or cash event and return its ledger entry."""
    try:
        return CorporateActionsService(db).apply_event(
            position_id,
            data.type,
            quantity=data.quantity,
            ratio=data.ratio,
            amount=data.amount,
            event_date=data.event_date,
            notes=data.notes,
        )
    except Exception as e:
        raise _http_error(e) from e


@router.get("/{position_id}/movements", response_model=list[Movement])
async def list_movements(position_id: int, db: Session = Depends(get_db)):
    """Ledger of a position, newest first."""
    try:
        return PositionService(db).list_movements(position_id)
    except Exception as e:
        raise _http_error(e) from e
