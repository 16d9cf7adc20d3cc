"""Tests for the portfolios router: CRUD, totals, history and analytics."""

import inspect
from datetime import date
from decimal import Decimal

import pytest

from wealth.models import GlobalAsset
from wealth.routers import portfolios, rates, wealth
from wealth.routers.portfolios import trading_days
from wealth.services.market_data.benchmark_client import BenchmarkPoint


def dec(value) -> Decimal:
    return Decimal(str(value))


@pytest.fixture
def stock(client, portfolio):
    """100 shares bought at 10, now at 12, created through the API."""
    response = client.post(
        "/api/positions",
        json={
            "portfolio_id": portfolio.id,
            "name": "PETR4",
            "instrument_type": "Ações",
            "ticker": "PETR4",
            "quantity": "100",
            "purchase_price": "10",
            "current_price": "12",
        },
    )
    assert response.status_code == 201
    return response.json()


class TestPortfolioCrud:
    """Test portfolio CRUD endpoints."""

    def test_create_and_list(self, client):
        response = client.post("/api/portfolios", json={"owner_id": "owner-9", "name": "Growth"})

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Growth"
        assert dec(created["total_value"]) == 0

        listed = client.get("/api/portfolios", params={"owner_id": "owner-9"}).json()
        assert [p["id"] for p in listed] == [created["id"]]

    def test_list_requires_owner(self, client):
        assert client.get("/api/portfolios").status_code == 422

    def test_get_unknown_portfolio(self, client):
        assert client.get("/api/portfolios/missing").status_code == 404

    def test_delete(self, client, portfolio):
        assert client.delete(f"/api/portfolios/{portfolio.id}").status_code == 204
        assert client.get(f"/api/portfolios/{portfolio.id}").status_code == 404

    def test_list_positions(self, client, portfolio, stock):
        positions = client.get(f"/api/portfolios/{portfolio.id}/positions").json()

        assert [p["id"] for p in positions] == [stock["id"]]


class TestTotals:
    """Test GET /api/portfolios/{id}/totals."""

    def test_totals_follow_positions(self, client, portfolio, stock):
        totals = client.get(f"/api/portfolios/{portfolio.id}/totals").json()

        assert dec(totals["total_value"]) == Decimal("1200")
        assert dec(totals["total_invested"]) == Decimal("1000")
        assert dec(totals["gain_percent"]) == Decimal("20")
        assert totals["position_count"] == 1

    def test_cached_totals_match(self, client, portfolio, stock):
        cached = client.get(f"/api/portfolios/{portfolio.id}").json()
        assert dec(cached["total_value"]) == Decimal("1200")

    def test_unknown_portfolio(self, client):
        assert client.get("/api/portfolios/missing/totals").status_code == 404


class TestHistoryAndPerformance:
    """Test history and performance endpoints."""

    def test_history_after_snapshot_run(self, client, portfolio, stock):
        client.post("/api/snapshots/run", json={"snapshot_date": "2025-06-01"})

        history = client.get(f"/api/portfolios/{portfolio.id}/history", params={"period": "ALL"}).json()

        assert len(history) == 1
        assert history[0]["date"] == "2025-06-01"
        assert dec(history[0]["total_value"]) == Decimal("1200")
        assert dec(history[0]["rate_a_accumulated"]) == Decimal("10")

    def test_history_bad_period(self, client, portfolio):
        response = client.get(f"/api/portfolios/{portfolio.id}/history", params={"period": "2W"})
        assert response.status_code == 400

    def test_performance_without_history_is_provisional(self, client, portfolio, stock):
        report = client.get(f"/api/portfolios/{portfolio.id}/performance").json()

        assert report["period"] == "12M"
        assert report["provisional"] is True
        assert dec(report["accumulated_return"]) == Decimal("20")
        assert all(point["provisional"] for point in report["monthly_returns"])

    def test_performance_from_snapshots(self, client, portfolio, stock, benchmark_service):
        client.post("/api/snapshots/run", json={"snapshot_date": "2025-06-01"})

        report = client.get(f"/api/portfolios/{portfolio.id}/performance", params={"period": "ALL"}).json()

        assert report["provisional"] is False
        assert dec(report["accumulated_return"]) == Decimal("20")
        # No series from the feed: the stored accumulated rate is used
        assert report["benchmark_source"] == "snapshot"
        assert dec(report["benchmark_ratio"]) == Decimal("200")
        benchmark_service.fetch_rate_a_series.assert_called_once()

    def test_lifetime_performance_compounds_series_from_first_snapshot(
        self, client, portfolio, stock, benchmark_service
    ):
        client.post("/api/snapshots/run", json={"snapshot_date": "2024-12-31"})
        client.patch(f"/api/positions/{stock['id']}", json={"current_price": "13"})
        client.post("/api/snapshots/run", json={"snapshot_date": "2025-12-31"})
        benchmark_service.fetch_rate_a_series.return_value = [
            BenchmarkPoint(date(2024, 8, 8), Decimal("0.5")),
            BenchmarkPoint(date(2025, 3, 3), Decimal("0.1")),
            BenchmarkPoint(date(2025, 9, 1), Decimal("0.1")),
        ]

        report = client.get(f"/api/portfolios/{portfolio.id}/performance", params={"period": "ALL"}).json()

        assert dec(report["accumulated_return"]) == Decimal("30")
        assert report["benchmark_source"] == "series"
        # Only the two points after the first snapshot: 1.1 * 1.1
        assert dec(report["benchmark_accumulated"]) == Decimal("21")
        assert dec(report["benchmark_ratio"]) == Decimal("142.8571")

    def test_performance_requests_trading_days(self, client, portfolio, stock, benchmark_service):
        client.get(f"/api/portfolios/{portfolio.id}/performance", params={"period": "12M"})

        [requested] = benchmark_service.fetch_rate_a_series.call_args.args
        assert requested < 365
        assert requested == trading_days(365) or requested == trading_days(366)

    def test_performance_bad_period(self, client, portfolio):
        response = client.get(f"/api/portfolios/{portfolio.id}/performance", params={"period": "5Y"})
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "endpoint",
        [
            portfolios.get_portfolio_performance,
            portfolios.get_portfolio_sensitivity,
            portfolios.get_portfolio_coverage,
            wealth.get_wealth,
            rates.get_rates,
        ],
    )
    def test_feed_backed_endpoints_run_in_threadpool(self, endpoint):
        """Endpoints that may block on a feed must not be coroutines."""
        assert not inspect.iscoroutinefunction(endpoint)


class TestAnalytics:
    """Test sensitivity, coverage and allocation endpoints."""

    def test_sensitivity_uses_estimates_without_measurements(self, client, portfolio, stock):
        report = client.get(f"/api/portfolios/{portfolio.id}/sensitivity").json()

        assert report["asset_count"] == 1
        [asset] = report["assets"]
        assert dec(asset["contribution"]) == Decimal("20")
        assert asset["impact"] == "positive"
        assert asset["volatility_source"] == "estimated"
        assert dec(asset["volatility"]) == Decimal("25")

    def test_sensitivity_without_measured_skips_feed(self, client, portfolio, stock):
        response = client.get(f"/api/portfolios/{portfolio.id}/sensitivity", params={"measured": "false"})
        assert response.status_code == 200

    def test_coverage_investments_view(self, client, portfolio):
        client.post(
            "/api/positions",
            json={
                "portfolio_id": portfolio.id,
                "name": "CDB Banco Inter 120% CDI",
                "instrument_type": "CDB",
                "current_value": "300000",
                "total_invested": "280000",
            },
        )

        report = client.get(f"/api/portfolios/{portfolio.id}/coverage").json()

        assert dec(report["covered_value"]) == Decimal("250000")
        assert dec(report["uncovered_value"]) == Decimal("50000")
        assert dec(report["percent"]) == Decimal("83.3333")
        assert report["by_issuer"][0]["issuer"] == "BANCO INTER"

    def test_coverage_wealth_view(self, client, db, portfolio):
        client.post(
            "/api/positions",
            json={
                "portfolio_id": portfolio.id,
                "name": "CDB Banco Inter",
                "instrument_type": "CDB",
                "current_value": "300000",
                "total_invested": "300000",
            },
        )
        db.add(GlobalAsset(owner_id="owner-1", name="Flat", currency="BRL", original_value=Decimal("100000")))
        db.commit()

        report = client.get(f"/api/portfolios/{portfolio.id}/coverage", params={"view": "wealth"}).json()

        # The flat is converted on read before it counts toward wealth
        assert dec(report["percent"]) == Decimal("62.5")

    def test_coverage_rejects_unknown_view(self, client, portfolio):
        response = client.get(f"/api/portfolios/{portfolio.id}/coverage", params={"view": "everything"})
        assert response.status_code == 422

    def test_allocation(self, client, portfolio, stock):
        slices = client.get(f"/api/portfolios/{portfolio.id}/allocation").json()

        assert slices[0]["instrument_type"] == "Ações"
        assert dec(slices[0]["weight"]) == Decimal("100")
