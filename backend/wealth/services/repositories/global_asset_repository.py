"""Global asset data access layer."""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from wealth.models import GlobalAsset
from wealth.services.repositories.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence


class GlobalAssetRepository:
    """Centralized global asset data access."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, asset_id: str) -> GlobalAsset | None:
        return self._db.query(GlobalAsset).filter(GlobalAsset.id == asset_id).first()

    def get_by_id(self, asset_id: str) -> GlobalAsset:
        asset = self.find_by_id(asset_id)
        if asset is None:
            raise NotFoundError("GlobalAsset", asset_id)
        return asset

    def find_by_owner(self, owner_id: str, category: str | None = None) -> "Sequence[GlobalAsset]":
        """Find an owner's global assets, optionally filtered by category."""
        query = self._db.query(GlobalAsset).filter(GlobalAsset.owner_id == owner_id)
        if category:
            query = query.filter(GlobalAsset.category == category)
        return query.order_by(GlobalAsset.name).all()

    def find_all(self) -> "Sequence[GlobalAsset]":
        return self._db.query(GlobalAsset).all()

    def add(self, asset: GlobalAsset) -> GlobalAsset:
        self._db.add(asset)
        self._db.flush()
        return asset

    def delete(self, asset: GlobalAsset) -> None:
        self._db.delete(asset)
        self._db.flush()
