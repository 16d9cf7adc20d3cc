"""Historical Snapshot model - represents daily portfolio value snapshots."""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Index, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from wealth.database import Base

if TYPE_CHECKING:
    from wealth.models.portfolio import Portfolio


class HistoricalSnapshot(Base):
    """Historical Snapshot model for daily portfolio value tracking."""

    __tablename__ = "historical_snapshots"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "date", name="uq_snapshot_portfolio_date"),
        Index("idx_snapshots_date", "date"),
        Index("idx_snapshots_portfolio", "portfolio_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[date] = mapped_column(Date)
    portfolio_id: Mapped[str] = mapped_column(ForeignKey("portfolios.id", ondelete="CASCADE"))
    total_value: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    total_invested: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    total_gain: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    gain_percent: Mapped[Decimal] = mapped_column(Numeric(12, 4))
    rate_a_accumulated: Mapped[Decimal | None] = mapped_column(Numeric(12, 6))
    rate_b_accumulated: Mapped[Decimal | None] = mapped_column(Numeric(12, 6))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    portfolio: Mapped["Portfolio"] = relationship(back_populates="historical_snapshots")

    def __repr__(self) -> str:
        return f"<HistoricalSnapshot(date={self.date}, portfolio_id={self.portfolio_id}, value={self.total_value})>"
