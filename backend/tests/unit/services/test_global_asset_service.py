"""Tests for GlobalAssetService."""

from datetime import timedelta
from decimal import Decimal

import pytest

from wealth.models import GlobalAsset
from wealth.services.currency.rate_cache import RateCache
from wealth.services.exceptions import StaleRateError
from wealth.services.global_asset_service import GlobalAssetService
from wealth.services.repositories import NotFoundError


@pytest.fixture
def service(db, rate_cache):
    return GlobalAssetService(db, rate_cache)


class TestGlobalAssetService:
    """Test CRUD with conversion into the reporting currency."""

    def test_create_converts_at_current_rate(self, service):
        usd = service.create_asset("owner-1", name="US account", original_value=Decimal("1000"), currency="usd")
        eur = service.create_asset("owner-1", name="EU account", original_value=Decimal("500"), currency="EUR")

        assert usd.currency == "USD"
        assert usd.exchange_rate == Decimal("5")
        assert usd.value_reporting == Decimal("5000")
        assert eur.value_reporting == Decimal("2750")
        assert usd.value_reporting == usd.original_value * usd.exchange_rate

    def test_reporting_currency_asset(self, service):
        asset = service.create_asset("owner-1", name="Apartment", original_value=Decimal("300000"), currency="BRL", category="imoveis")

        assert asset.exchange_rate == Decimal("1")
        assert asset.value_reporting == Decimal("300000")

    def test_original_value_rounded_to_cents(self, service):
        asset = service.create_asset("owner-1", name="Cash", original_value=Decimal("10.005"), currency="BRL")
        assert asset.original_value == Decimal("10.01")

    def test_unknown_currency(self, db, service):
        with pytest.raises(StaleRateError):
            service.create_asset("owner-1", name="Mystery", original_value=Decimal("1"), currency="XYZ")
        assert db.query(GlobalAsset).count() == 0

    @pytest.mark.parametrize(
        "values",
        [
            {"original_value": Decimal("-1"), "category": "outros"},
            {"original_value": Decimal("1"), "category": "yachts"},
        ],
    )
    def test_invalid_values(self, service, values):
        with pytest.raises(ValueError):
            service.create_asset("owner-1", name="Bad", currency="BRL", **values)

    def test_update_reconverts(self, service):
        asset = service.create_asset("owner-1", name="US account", original_value=Decimal("1000"), currency="USD")

        service.update_asset(asset.id, original_value=Decimal("2000"))
        assert asset.value_reporting == Decimal("10000")

        service.update_asset(asset.id, currency="GBP")
        assert asset.exchange_rate == Decimal("6.25")
        assert asset.value_reporting == Decimal("12500")

    def test_update_unknown_field(self, service):
        asset = service.create_asset("owner-1", name="Cash", original_value=Decimal("1"), currency="BRL")
        with pytest.raises(ValueError):
            service.update_asset(asset.id, owner_id="owner-2")

    def test_delete(self, db, service):
        asset = service.create_asset("owner-1", name="Cash", original_value=Decimal("1"), currency="BRL")

        service.delete_asset(asset.id)

        assert db.query(GlobalAsset).count() == 0
        with pytest.raises(NotFoundError):
            service.delete_asset(asset.id)

    def test_list_by_category(self, service):
        service.create_asset("owner-1", name="Flat", original_value=Decimal("1"), currency="BRL", category="imoveis")
        service.create_asset("owner-1", name="Car", original_value=Decimal("1"), currency="BRL", category="veiculos")
        service.create_asset("owner-2", name="Other flat", original_value=Decimal("1"), currency="BRL", category="imoveis")

        assert [a.name for a in service.list_assets("owner-1", "imoveis")] == ["Flat"]
        assert len(service.list_assets("owner-1")) == 2


class TestRefreshReportingValues:
    """Test the materiality gate on re-conversion."""

    @pytest.fixture
    def feed(self):
        return {"USD": Decimal("0.2")}

    @pytest.fixture
    def service(self, db, feed):
        cache = RateCache(fetcher=lambda base: dict(feed), reporting_currency="BRL", stale_after=timedelta(hours=1))
        return GlobalAssetService(db, cache)

    def test_small_move_is_not_written(self, service, feed):
        asset = service.create_asset("owner-1", name="US account", original_value=Decimal("1000"), currency="USD")
        feed["USD"] = Decimal("0.19999")  # 5.00025 BRL, a 0.005% move
        service._rate_cache.refresh()

        result = service.refresh_reporting_values("owner-1")

        assert result.unchanged == [asset.id]
        assert asset.exchange_rate == Decimal("5")

    def test_material_move_is_written(self, service, feed):
        asset = service.create_asset("owner-1", name="US account", original_value=Decimal("1000"), currency="USD")
        feed["USD"] = Decimal("0.2") / Decimal("1.01")  # 1% move
        service._rate_cache.refresh()

        result = service.refresh_reporting_values()

        assert result.updated == [asset.id]
        assert asset.value_reporting == Decimal("5050")
        assert asset.value_reporting == asset.original_value * asset.exchange_rate
