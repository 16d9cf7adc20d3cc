"""Movement ledger data access layer.

Movements are append-only: there is no update or delete here.
"""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import desc
from sqlalchemy.orm import Session

from wealth.models import Movement

if TYPE_CHECKING:
    from collections.abc import Sequence


class MovementRepository:
    """Append-only access to the movement ledger."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def record(self, movement: Movement) -> Movement:
        """Append a movement to the ledger."""
        if movement.movement_date is None:
            movement.movement_date = date.today()
        self._db.add(movement)
        self._db.flush()
        return movement

    def find_by_position(self, position_id: int) -> "Sequence[Movement]":
        """Movements of a position, newest first."""
        return (
            self._db.query(Movement)
            .filter(Movement.position_id == position_id)
            .order_by(desc(Movement.movement_date), desc(Movement.id))
            .all()
        )

    def find_by_portfolio(self, portfolio_id: str) -> "Sequence[Movement]":
        """Movements of a portfolio, newest first."""
        return (
            self._db.query(Movement)
            .filter(Movement.portfolio_id == portfolio_id)
            .order_by(desc(Movement.movement_date), desc(Movement.id))
            .all()
        )
