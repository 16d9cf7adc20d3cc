"""Global assets: manually declared holdings in any currency."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from wealth.constants import GlobalAssetCategory
from wealth.models import GlobalAsset
from wealth.services.currency.consolidator import ConsolidationResult, CurrencyConsolidator
from wealth.services.currency.rate_cache import RateCache
from wealth.services.exceptions import StaleRateError
from wealth.services.repositories import GlobalAssetRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

EDITABLE_FIELDS = ("name", "category", "currency", "original_value", "notes")


class GlobalAssetService:
    """CRUD for global assets that keeps their reporting value converted.

    Creating or editing an asset converts it with the current rate right
    away; refresh_reporting_values() re-converts an owner's assets and only
    writes material changes.
    """

    def __init__(self, db: Session, rate_cache: RateCache) -> None:
        self._db = db
        self._assets = GlobalAssetRepository(db)
        self._rate_cache = rate_cache
        self._consolidator = CurrencyConsolidator(reporting_currency=rate_cache.reporting_currency)

    def list_assets(self, owner_id: str, category: str | None = None) -> list[GlobalAsset]:
        return list(self._assets.find_by_owner(owner_id, category))

    def create_asset(
        self,
        owner_id: str,
        *,
        name: str,
        original_value: Decimal,
        currency: str,
        category: str = GlobalAssetCategory.OTHER,
        notes: str | None = None,
    ) -> GlobalAsset:
        """Create an asset converted at the current rate.

        Raises:
            StaleRateError: If no rate is known for the currency
            ValueError: On a negative value or unknown category
        """
        asset = GlobalAsset(owner_id=owner_id, notes=notes)
        self._assign(asset, name=name, original_value=original_value, currency=currency, category=category)
        try:
            self._convert(asset)
            self._assets.add(asset)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        logger.info(f"Created global asset {asset.id} ({asset.name}) for owner {owner_id}")
        return asset

    def update_asset(self, asset_id: str, **changes) -> GlobalAsset:
        """Edit an asset and re-convert it.

        Raises:
            NotFoundError: If the asset does not exist
            ValueError: On unknown fields or invalid values
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot edit fields: {sorted(unknown)}")

        asset = self._assets.get_by_id(asset_id)
        try:
            self._assign(asset, **changes)
            self._convert(asset)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return asset

    def delete_asset(self, asset_id: str) -> None:
        asset = self._assets.get_by_id(asset_id)
        try:
            self._assets.delete(asset)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

    def refresh_reporting_values(self, owner_id: str | None = None) -> ConsolidationResult:
        """Re-convert an owner's assets (or everyone's) with current rates."""
        assets = self._assets.find_by_owner(owner_id) if owner_id else self._assets.find_all()
        try:
            result = self._consolidator.consolidate_all(assets, self._rate_cache)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return result

    def _assign(self, asset: GlobalAsset, **values) -> None:
        if "category" in values and values["category"] not in GlobalAssetCategory.ALL:
            raise ValueError(f"Unknown category: {values['category']}")
        if "original_value" in values:
            original = Decimal(str(values["original_value"]))
            if original < 0:
                raise ValueError("Asset value cannot be negative")
            values["original_value"] = original.quantize(CENT, rounding=ROUND_HALF_UP)
        if "currency" in values:
            values["currency"] = values["currency"].upper()
        for field, value in values.items():
            setattr(asset, field, value)

    def _convert(self, asset: GlobalAsset) -> None:
        entry = self._rate_cache.get_rate(asset.currency)
        if entry is None:
            raise StaleRateError(f"No rate available for {asset.currency}")
        if entry.stale:
            logger.warning(f"Converting {asset.name} with a stale {asset.currency} rate")
        self._consolidator.apply(asset, entry.rate)
