"""Tests for the snapshot trigger and health endpoints."""

from decimal import Decimal

from wealth.services.portfolio.valuation_types import BenchmarkRates


def dec(value) -> Decimal:
    return Decimal(str(value))


class TestSnapshotsRouter:
    """Test POST /api/snapshots/run."""

    def test_run_for_date(self, client, portfolio, make_position):
        make_position(portfolio, current_value=Decimal("500"), total_invested=Decimal("400"))

        response = client.post("/api/snapshots/run", json={"snapshot_date": "2025-06-01"})

        assert response.status_code == 200
        body = response.json()
        assert body["snapshot_date"] == "2025-06-01"
        assert body["succeeded"] == 1
        assert body["failed"] == 0
        assert dec(body["rate_a_accumulated"]) == Decimal("10")
        assert body["results"][0]["portfolio_id"] == portfolio.id

    def test_rerun_keeps_one_row_per_day(self, client, portfolio, make_position):
        make_position(portfolio, current_value=Decimal("500"), total_invested=Decimal("400"))

        client.post("/api/snapshots/run", json={"snapshot_date": "2025-06-01"})
        client.post("/api/snapshots/run", json={"snapshot_date": "2025-06-01"})

        history = client.get(f"/api/portfolios/{portfolio.id}/history").json()
        assert len(history) == 1

    def test_run_without_body_defaults_to_today(self, client, portfolio):
        response = client.post("/api/snapshots/run")

        assert response.status_code == 200
        assert response.json()["succeeded"] == 1

    def test_null_benchmark_rates(self, client, portfolio, benchmark_service):
        benchmark_service.fetch_accumulated.return_value = BenchmarkRates(None, None)

        body = client.post("/api/snapshots/run", json={"snapshot_date": "2025-06-01"}).json()

        assert body["succeeded"] == 1
        assert body["rate_a_accumulated"] is None

    def test_rate_limited(self, client):
        statuses = [client.post("/api/snapshots/run").status_code for _ in range(6)]

        assert statuses[:5] == [200] * 5
        assert statuses[5] == 429


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_root(self, client):
        assert client.get("/").json()["message"] == "Wealth Tracker API"
