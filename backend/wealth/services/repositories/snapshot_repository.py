"""Historical snapshot data access layer."""

import logging
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wealth.models import HistoricalSnapshot

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    "total_value",
    "total_invested",
    "total_gain",
    "gain_percent",
    "rate_a_accumulated",
    "rate_b_accumulated",
)


class SnapshotRepository:
    """Historical snapshot data access.

    Snapshots are written only through upsert(), keyed on
    (portfolio_id, date), so re-running a day overwrites that day's row.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_portfolio_and_date(
        self, portfolio_id: str, snapshot_date: date
    ) -> HistoricalSnapshot | None:
        return (
            self._db.query(HistoricalSnapshot)
            .filter(
                HistoricalSnapshot.portfolio_id == portfolio_id,
                HistoricalSnapshot.date == snapshot_date,
            )
            .first()
        )

    def find_range(
        self,
        portfolio_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> "Sequence[HistoricalSnapshot]":
        """Snapshots of a portfolio in [start_date, end_date], oldest first."""
        query = self._db.query(HistoricalSnapshot).filter(
            HistoricalSnapshot.portfolio_id == portfolio_id
        )
        if start_date is not None:
            query = query.filter(HistoricalSnapshot.date >= start_date)
        if end_date is not None:
            query = query.filter(HistoricalSnapshot.date <= end_date)
        return query.order_by(HistoricalSnapshot.date).all()

    def upsert(self, portfolio_id: str, snapshot_date: date, **values) -> HistoricalSnapshot:
        """Insert or overwrite the snapshot for (portfolio_id, snapshot_date).

        A concurrent insert of the same key surfaces as an IntegrityError on
        flush; the row is then re-read and updated instead.
        """
        unknown = set(values) - set(SNAPSHOT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown snapshot fields: {sorted(unknown)}")

        snapshot = self.find_by_portfolio_and_date(portfolio_id, snapshot_date)
        if snapshot is None:
            snapshot = HistoricalSnapshot(portfolio_id=portfolio_id, date=snapshot_date, **values)
            try:
                with self._db.begin_nested():
                    self._db.add(snapshot)
                    self._db.flush()
                return snapshot
            except IntegrityError:
                logger.debug(f"Snapshot {portfolio_id}@{snapshot_date} inserted concurrently")
                snapshot = self.find_by_portfolio_and_date(portfolio_id, snapshot_date)
                if snapshot is None:
                    raise

        for field, value in values.items():
            setattr(snapshot, field, value)
        self._db.flush()
        return snapshot
