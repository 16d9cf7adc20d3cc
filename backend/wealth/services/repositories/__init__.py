"""Repository layer - data access abstraction.

Repositories handle all database queries, providing a clean interface
for services. Services should use repositories for data access rather
than directly querying SQLAlchemy models.

Dependency direction: Services -> Repositories -> Models
"""

from .exceptions import NotFoundError
from .global_asset_repository import GlobalAssetRepository
from .movement_repository import MovementRepository
from .portfolio_repository import PortfolioRepository
from .position_repository import PositionRepository
from .snapshot_repository import SnapshotRepository

__all__ = [
    "GlobalAssetRepository",
    "MovementRepository",
    "NotFoundError",
    "PortfolioRepository",
    "PositionRepository",
    "SnapshotRepository",
]
