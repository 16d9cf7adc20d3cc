"""Global Asset model - manually declared holdings in any currency."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from wealth.database import Base


class GlobalAsset(Base):
    """Global asset (real estate, vehicles, foreign accounts...).

    value_reporting is always original_value * exchange_rate; both columns
    are written together by the currency consolidator.
    """

    __tablename__ = "global_assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    owner_id: Mapped[str] = mapped_column(String(36), index=True)
    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[str] = mapped_column(String(30), default="outros")
    currency: Mapped[str] = mapped_column(String(3), default="BRL")
    original_value: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    value_reporting: Mapped[Decimal] = mapped_column(Numeric(28, 10), default=Decimal("0"))
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal("1"))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return (
            f"<GlobalAsset(name='{self.name}', {self.original_value} {self.currency} "
            f"@ {self.exchange_rate})>"
        )
