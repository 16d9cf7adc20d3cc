"""Accumulated benchmark rates (CDI as rate A, IPCA as rate B)."""

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from decimal import Decimal

from wealth.config import settings
from wealth.services.market_data.benchmark_client import BenchmarkClient, BenchmarkPoint
from wealth.services.portfolio.valuation_types import BenchmarkRates
from wealth.services.shared.http_client import HTTPClientError

logger = logging.getLogger(__name__)

RATE_PRECISION = Decimal("0.000001")


def accumulate(rates: Iterable, window: int | None = None) -> Decimal:
    """Compound period rates into an accumulated percentage.

    (prod(1 + r_i) - 1) * 100 over the last `window` entries, e.g.
    [0.01, 0.01, 0.01] -> 3.030100.

    Args:
        rates: Decimal period rates (0.0005 == 0.05%), oldest first
        window: Keep only the most recent N rates (rolling window)
    """
    values = [Decimal(str(r)) for r in rates]
    if window is not None:
        values = values[-window:] if window > 0 else []

    product = Decimal("1")
    for rate in values:
        product *= Decimal("1") + rate
    return ((product - 1) * 100).quantize(RATE_PRECISION)


def accumulated_between(
    points: Sequence[BenchmarkPoint], start: date | None, end: date
) -> Decimal | None:
    """Compound the points dated in (start, end]; None if there are none."""
    selected = [p.rate for p in points if (start is None or p.date > start) and p.date <= end]
    if not selected:
        return None
    return accumulate(selected)


class BenchmarkService:
    """Fetches benchmark series and compounds them over rolling windows.

    Feed failures never propagate: fetch_accumulated() returns
    BenchmarkRates(None, None) and logs, so snapshots are still written
    with NULL accumulated rates.

    Usage:
        rates = BenchmarkService().fetch_accumulated()
        if rates.available:
            ratio = gain_percent / rates.rate_a_accumulated * 100
    """

    def __init__(self, client_factory: Callable[[], BenchmarkClient] | None = None) -> None:
        self._client_factory = client_factory or BenchmarkClient

    def fetch_accumulated(self) -> BenchmarkRates:
        """Accumulated rate A over its daily window and rate B over its monthly window."""
        try:
            with self._client_factory() as client:
                rate_a = client.fetch_rate_a(settings.rate_a_window)
                rate_b = client.fetch_rate_b(settings.rate_b_window)
        except HTTPClientError as e:
            logger.warning(f"Benchmark feed unavailable, storing NULL accumulated rates: {e}")
            return BenchmarkRates(None, None)

        if not rate_a:
            logger.warning("Benchmark feed returned an empty rate A series")
            return BenchmarkRates(None, None)

        return BenchmarkRates(
            rate_a_accumulated=accumulate((p.rate for p in rate_a), settings.rate_a_window),
            rate_b_accumulated=(
                accumulate((p.rate for p in rate_b), settings.rate_b_window) if rate_b else None
            ),
        )

    def fetch_rate_a_series(self, last_n: int) -> list[BenchmarkPoint]:
        """Raw rate A series for period comparisons; empty on failure."""
        try:
            with self._client_factory() as client:
                return client.fetch_rate_a(last_n)
        except HTTPClientError as e:
            logger.warning(f"Benchmark feed unavailable: {e}")
            return []

    def fetch_rate_b_series(self, last_n: int) -> list[BenchmarkPoint]:
        """Raw rate B series for inflation adjustment; empty on failure."""
        try:
            with self._client_factory() as client:
                return client.fetch_rate_b(last_n)
        except HTTPClientError as e:
            logger.warning(f"Benchmark feed unavailable: {e}")
            return []
