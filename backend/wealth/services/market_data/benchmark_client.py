"""Benchmark rate feed client (Banco Central do Brasil SGS API).

Series are returned by the SGS API as percentages per period, e.g.
{"data": "02/01/2025", "valor": "0.045513"} for the daily CDI. This client
converts them to decimal period rates (0.00045513) ready for compounding.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from wealth.config import settings
from wealth.services.shared.http_client import HTTPClient, HTTPClientError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BenchmarkPoint:
    """One period rate of a benchmark series."""

    date: date
    rate: Decimal  # decimal period rate, 0.0005 == 0.05%


class BenchmarkClient(HTTPClient):
    """Client for the SGS time-series API.

    Usage:
        with BenchmarkClient() as client:
            cdi = client.fetch_rate_a()   # last 252 daily CDI rates
            ipca = client.fetch_rate_b()  # last 12 monthly IPCA rates
    """

    feed_name = "sgs"

    def __init__(self, base_url: str | None = None, timeout: float = 15.0):
        super().__init__(base_url=base_url or settings.benchmark_api_url, timeout=timeout)

    def fetch_series(self, series_code: int, last_n: int) -> list[BenchmarkPoint]:
        """Fetch the last N entries of a series, oldest first.

        Raises:
            HTTPClientError: If the feed fails or returns an unexpected payload
        """
        payload = self.get_json(
            f"/bcdata.sgs.{series_code}/dados/ultimos/{last_n}", params={"formato": "json"}
        )
        if not isinstance(payload, list):
            raise HTTPClientError(f"SGS series {series_code} returned unexpected payload")

        points = []
        for row in payload:
            try:
                point_date = datetime.strptime(row["data"], "%d/%m/%Y").date()
                rate = Decimal(str(row["valor"])) / Decimal("100")
            except (KeyError, TypeError, ValueError, InvalidOperation):
                logger.warning(f"Skipping malformed SGS row for series {series_code}: {row!r}")
                continue
            points.append(BenchmarkPoint(date=point_date, rate=rate))

        points.sort(key=lambda p: p.date)
        return points

    def fetch_rate_a(self, window: int | None = None) -> list[BenchmarkPoint]:
        """Daily risk-free reference (CDI)."""
        return self.fetch_series(settings.rate_a_series, window or settings.rate_a_window)

    def fetch_rate_b(self, window: int | None = None) -> list[BenchmarkPoint]:
        """Monthly inflation reference (IPCA)."""
        return self.fetch_series(settings.rate_b_series, window or settings.rate_b_window)
