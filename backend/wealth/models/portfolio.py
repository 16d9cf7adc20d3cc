"""Portfolio model - aggregate of positions with cached totals."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from wealth.database import Base

if TYPE_CHECKING:
    from wealth.models.historical_snapshot import HistoricalSnapshot
    from wealth.models.position import Position


class Portfolio(Base):
    """Portfolio model.

    The total_* columns are a cache of the aggregate of the portfolio's
    positions. They are only ever written by re-aggregation, never edited
    independently.
    """

    __tablename__ = "portfolios"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    owner_id: Mapped[str] = mapped_column(String(36), index=True)
    name: Mapped[str] = mapped_column(String(100))
    total_value: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    total_invested: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    total_gain: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    gain_percent: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))
    benchmark_ratio: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    positions: Mapped[list["Position"]] = relationship(
        back_populates="portfolio", cascade="all, delete-orphan"
    )
    historical_snapshots: Mapped[list["HistoricalSnapshot"]] = relationship(
        back_populates="portfolio", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Portfolio(id={self.id}, name='{self.name}', total_value={self.total_value})>"
