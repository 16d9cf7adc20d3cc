"""Conversion of global assets into the reporting currency."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from wealth.config import settings
from wealth.models import GlobalAsset
from wealth.services.currency.rate_cache import RateCache

logger = logging.getLogger(__name__)


@dataclass
class ConsolidationResult:
    """Outcome of a consolidation pass, by asset id."""

    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "updated": len(self.updated),
            "unchanged": len(self.unchanged),
            "skipped": len(self.skipped),
            "skipped_ids": self.skipped,
        }


class CurrencyConsolidator:
    """Keeps GlobalAsset.value_reporting in line with current rates.

    A stored value is only rewritten when the relative change exceeds the
    materiality threshold, so rate noise does not turn every refresh into a
    write (and updated_at keeps meaning "the valuation materially changed").
    value_reporting and exchange_rate are always written together.
    """

    def __init__(
        self,
        reporting_currency: str | None = None,
        threshold: Decimal | None = None,
    ) -> None:
        self.reporting_currency = (reporting_currency or settings.reporting_currency).upper()
        self.threshold = settings.materiality_threshold if threshold is None else threshold

    def is_material(self, new_value: Decimal, stored_value: Decimal | None) -> bool:
        """Whether new_value differs enough from stored_value to be written."""
        if stored_value is None:
            return True
        if stored_value == 0:
            return new_value != 0
        return abs(new_value - stored_value) / abs(stored_value) > self.threshold

    def consolidate(self, asset: GlobalAsset, rate: Decimal) -> Decimal:
        """Convert an asset with the given rate, writing only material changes.

        Args:
            asset: Global asset (mutated in place when the change is material)
            rate: Reporting currency units per 1 unit of the asset's currency

        Returns:
            The asset's reporting-currency value after the pass
        """
        self._consolidate(asset, rate)
        return asset.value_reporting

    def apply(self, asset: GlobalAsset, rate: Decimal) -> Decimal:
        """Unconditionally write the conversion (asset created or edited)."""
        rate = self._effective_rate(asset, rate)
        asset.exchange_rate = rate
        asset.value_reporting = Decimal(asset.original_value) * rate
        return asset.value_reporting

    def consolidate_all(
        self, assets: Iterable[GlobalAsset], rate_cache: RateCache
    ) -> ConsolidationResult:
        """Consolidate many assets; assets without a known rate are skipped."""
        result = ConsolidationResult()

        for asset in assets:
            entry = rate_cache.get_rate(asset.currency)
            if entry is None:
                logger.warning(
                    f"Skipping global asset {asset.id} ({asset.name}): no rate for {asset.currency}"
                )
                result.skipped.append(asset.id)
                continue

            if entry.stale:
                logger.debug(f"Using stale {asset.currency} rate ({entry.source}) for {asset.id}")

            if self._consolidate(asset, entry.rate):
                result.updated.append(asset.id)
            else:
                result.unchanged.append(asset.id)

        logger.info(
            f"Consolidated global assets: {len(result.updated)} updated, "
            f"{len(result.unchanged)} unchanged, {len(result.skipped)} skipped"
        )
        return result

    def _consolidate(self, asset: GlobalAsset, rate: Decimal) -> bool:
        rate = self._effective_rate(asset, rate)
        new_value = Decimal(asset.original_value) * rate
        stored = asset.value_reporting

        if not self.is_material(new_value, stored):
            return False

        asset.exchange_rate = rate
        asset.value_reporting = new_value
        return True

    def _effective_rate(self, asset: GlobalAsset, rate: Decimal) -> Decimal:
        if (asset.currency or self.reporting_currency).upper() == self.reporting_currency:
            return Decimal("1")
        return Decimal(str(rate))
