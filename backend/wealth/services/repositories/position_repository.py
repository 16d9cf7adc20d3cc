"""Position data access layer."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from wealth.models import Portfolio, Position
from wealth.services.repositories.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class PositionRepository:
    """Centralized position data access.

    Naming conventions:
    - find_* : Query that may return None or empty list
    - get_* : Query that raises NotFoundError if missing
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, position_id: int) -> Position | None:
        """Find position by primary key."""
        return self._db.query(Position).filter(Position.id == position_id).first()

    def get_by_id(self, position_id: int) -> Position:
        """Get position by primary key, raising NotFoundError if missing."""
        position = self.find_by_id(position_id)
        if position is None:
            raise NotFoundError("Position", position_id)
        return position

    def find_by_portfolio(self, portfolio_id: str) -> "Sequence[Position]":
        """Find all positions of a portfolio."""
        return (
            self._db.query(Position)
            .filter(Position.portfolio_id == portfolio_id)
            .order_by(Position.id)
            .all()
        )

    def find_by_owner(self, owner_id: str) -> "Sequence[Position]":
        """Find all positions across an owner's portfolios."""
        return (
            self._db.query(Position)
            .join(Portfolio, Position.portfolio_id == Portfolio.id)
            .filter(Portfolio.owner_id == owner_id)
            .order_by(Position.id)
            .all()
        )

    def add(self, position: Position) -> Position:
        """Insert a new position."""
        self._db.add(position)
        self._db.flush()
        return position

    def delete(self, position: Position) -> None:
        """Delete a position."""
        self._db.delete(position)
        self._db.flush()
