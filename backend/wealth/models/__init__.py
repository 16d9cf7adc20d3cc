"""SQLAlchemy ORM models."""

from wealth.models.global_asset import GlobalAsset
from wealth.models.historical_snapshot import HistoricalSnapshot
from wealth.models.movement import Movement
from wealth.models.portfolio import Portfolio
from wealth.models.position import Position

__all__ = [
    "GlobalAsset",
    "HistoricalSnapshot",
    "Movement",
    "Portfolio",
    "Position",
]
