"""Position model - represents a holding inside a portfolio."""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from wealth.database import Base

if TYPE_CHECKING:
    from wealth.models.portfolio import Portfolio


class Position(Base):
    """Position model.

    current_value, total_invested and gain_percent are stored in the
    reporting currency.
    """

    __tablename__ = "positions"
    __table_args__ = (
        Index("idx_positions_portfolio", "portfolio_id"),
        Index("idx_positions_ticker", "ticker"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    portfolio_id: Mapped[str] = mapped_column(ForeignKey("portfolios.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(200))
    instrument_type: Mapped[str] = mapped_column(String(60))
    ticker: Mapped[str | None] = mapped_column(String(20))
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(20, 8))
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 8))
    current_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 8))
    currency: Mapped[str] = mapped_column(String(3), default="BRL")
    current_value: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    total_invested: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    gain_percent: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))
    maturity_date: Mapped[date | None] = mapped_column(Date)
    source: Mapped[str] = mapped_column(String(20), default="manual")
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    portfolio: Mapped["Portfolio"] = relationship(back_populates="positions")

    def __repr__(self) -> str:
        return f"<Position(id={self.id}, name='{self.name}', current_value={self.current_value})>"
