"""Portfolio data access layer."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from wealth.models import Portfolio
from wealth.services.repositories.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class PortfolioRepository:
    """Centralized portfolio data access.

    Naming conventions:
    - find_* : Query that may return None
    - get_* : Query that raises NotFoundError if missing
    - create_* : Insert new record
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, portfolio_id: str) -> Portfolio | None:
        """Find portfolio by primary key."""
        return self._db.query(Portfolio).filter(Portfolio.id == portfolio_id).first()

    def get_by_id(self, portfolio_id: str) -> Portfolio:
        """Get portfolio by primary key, raising NotFoundError if missing."""
        portfolio = self.find_by_id(portfolio_id)
        if portfolio is None:
            raise NotFoundError("Portfolio", portfolio_id)
        return portfolio

    def find_by_owner(self, owner_id: str) -> "Sequence[Portfolio]":
        """Find all portfolios of an owner, oldest first."""
        return (
            self._db.query(Portfolio)
            .filter(Portfolio.owner_id == owner_id)
            .order_by(Portfolio.created_at, Portfolio.name)
            .all()
        )

    def find_all(self) -> "Sequence[Portfolio]":
        """Find every portfolio."""
        return self._db.query(Portfolio).order_by(Portfolio.created_at).all()

    def find_all_ids(self) -> list[str]:
        """Ids of every portfolio (used by the snapshot batch)."""
        return [row.id for row in self._db.query(Portfolio.id).order_by(Portfolio.id).all()]

    def create(self, owner_id: str, name: str) -> Portfolio:
        """Create an empty portfolio."""
        portfolio = Portfolio(owner_id=owner_id, name=name)
        self._db.add(portfolio)
        self._db.flush()
        logger.debug(f"Created portfolio {portfolio.id} for owner {owner_id}")
        return portfolio

    def delete(self, portfolio: Portfolio) -> None:
        """Delete a portfolio with its positions and snapshots."""
        self._db.delete(portfolio)
        self._db.flush()
