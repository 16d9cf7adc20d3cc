"""Movement model - immutable ledger of position changes and cash events."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from wealth.database import Base


class Movement(Base):
    """
    Ledger entry written alongside every position mutation.

    Supports:
    - Purchases, contributions and redemptions
    - Transfers between portfolios
    - Corporate events (bonus, split, reverse split, amortization)
    - Cash events (dividend, JCP, income)
    """

    __tablename__ = "movements"
    __table_args__ = (
        Index("idx_movements_portfolio", "portfolio_id"),
        Index("idx_movements_position", "position_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[str | None] = mapped_column(
        ForeignKey("portfolios.id", ondelete="SET NULL")
    )
    position_id: Mapped[int | None] = mapped_column(ForeignKey("positions.id", ondelete="SET NULL"))
    type: Mapped[str] = mapped_column(String(30))
    asset_name: Mapped[str] = mapped_column(String(200))
    ticker: Mapped[str | None] = mapped_column(String(20))
    asset_type: Mapped[str | None] = mapped_column(String(60))
    quantity: Mapped[Decimal] = mapped_column(Numeric(20, 8), default=Decimal("0"))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal("0"))
    total_value: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text)
    movement_date: Mapped[date] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    def __repr__(self):
        return f"<Movement(type={self.type}, asset='{self.asset_name}', qty={self.quantity}, {self.movement_date})>"
