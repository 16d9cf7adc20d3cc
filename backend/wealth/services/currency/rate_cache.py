"""Latest-known currency rates, expressed in reporting currency per foreign unit."""

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from types import MappingProxyType

from wealth.config import settings
from wealth.constants import RateSource
from wealth.services.exceptions import StaleRateError
from wealth.services.market_data.exchange_rate_client import ExchangeRateClient
from wealth.services.shared.http_client import HTTPClientError

logger = logging.getLogger(__name__)

RATE_PRECISION = Decimal("0.00000001")

# Used when the feed has never answered; reporting currency units per 1 unit
FALLBACK_RATES: Mapping[str, Decimal] = MappingProxyType(
    {
        "BRL": Decimal("1"),
        "USD": Decimal("5.0"),
        "EUR": Decimal("5.5"),
        "GBP": Decimal("6.3"),
        "CHF": Decimal("5.7"),
        "JPY": Decimal("0.033"),
        "CAD": Decimal("3.7"),
        "AUD": Decimal("3.3"),
        "CNY": Decimal("0.69"),
    }
)

RateFetcher = Callable[[str], Mapping[str, Decimal]]


@dataclass(frozen=True)
class RateEntry:
    """A conversion rate as seen by a reader."""

    currency: str
    rate: Decimal
    fetched_at: datetime | None
    source: str
    stale: bool


@dataclass(frozen=True)
class _RateTable:
    rates: Mapping[str, Decimal]
    fetched_at: datetime
    source: str


def fetch_from_feed(reporting_currency: str) -> Mapping[str, Decimal]:
    """Default fetcher: the exchange rate feed, with failures as StaleRateError."""
    try:
        with ExchangeRateClient() as client:
            return client.fetch_rates(reporting_currency)
    except HTTPClientError as e:
        raise StaleRateError(f"Rate feed unavailable: {e}") from e


def invert_rates(provided: Mapping[str, Decimal], reporting_currency: str) -> dict[str, Decimal]:
    """Turn "foreign per reporting unit" quotes into "reporting per foreign unit".

    Non-positive quotes are dropped. The reporting currency always maps to 1.
    """
    inverted = {reporting_currency: Decimal("1")}
    for code, value in provided.items():
        value = Decimal(str(value))
        if value <= 0:
            logger.warning(f"Dropping non-positive rate for {code}: {value}")
            continue
        if code == reporting_currency:
            continue
        inverted[code] = (Decimal("1") / value).quantize(RATE_PRECISION)
    return inverted


class RateCache:
    """Read-mostly cache of the latest conversion rate per currency.

    The rate table is an immutable mapping replaced in a single assignment on
    refresh, so readers never take a lock and never see a half-built table.
    Refreshes are serialized by a lock and happen:
    - on demand, when a read finds the table missing or stale
    - periodically, from a background thread started with start()

    When the feed fails the last live table is kept; if there never was one
    the built-in fallback table is installed. Rates from the fallback table
    are always reported as stale.

    Usage:
        cache = RateCache()
        entry = cache.get_rate("USD")
        value_brl = amount_usd * entry.rate
    """

    def __init__(
        self,
        fetcher: RateFetcher | None = None,
        reporting_currency: str | None = None,
        stale_after: timedelta | None = None,
        retry_after: timedelta | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.reporting_currency = (reporting_currency or settings.reporting_currency).upper()
        self._fetcher = fetcher or fetch_from_feed
        self._stale_after = stale_after or timedelta(seconds=settings.rate_stale_after_seconds)
        self._retry_after = retry_after or timedelta(seconds=settings.rate_refresh_seconds)
        self._clock = clock or (lambda: datetime.now(UTC))

        self._table: _RateTable | None = None
        self._last_attempt: datetime | None = None
        self._refresh_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def get_rate(self, currency: str) -> RateEntry | None:
        """Get the reporting-currency rate for one unit of a currency.

        Returns:
            RateEntry (check .stale), or None if the currency is unknown
        """
        currency = currency.upper()
        if currency == self.reporting_currency:
            return RateEntry(currency, Decimal("1"), self._clock(), RateSource.LIVE, stale=False)

        table = self._ensure_fresh()
        if table is None:
            return None

        rate = table.rates.get(currency)
        if rate is None:
            logger.warning(f"No {currency}/{self.reporting_currency} rate available")
            return None

        return RateEntry(
            currency=currency,
            rate=rate,
            fetched_at=table.fetched_at,
            source=table.source,
            stale=self._is_stale(table),
        )

    def snapshot(self) -> dict[str, Decimal]:
        """Copy of the current rate table (refreshing it if needed)."""
        table = self._ensure_fresh()
        return dict(table.rates) if table else {}

    def status(self) -> dict:
        """Describe the current table for diagnostics."""
        table = self._table
        return {
            "reporting_currency": self.reporting_currency,
            "source": table.source if table else None,
            "fetched_at": table.fetched_at if table else None,
            "stale": True if table is None else self._is_stale(table),
            "currencies": sorted(table.rates) if table else [],
        }

    def refresh(self) -> bool:
        """Fetch a new table from the feed and swap it in.

        Returns:
            True if a live table was installed, False if the fetch failed
        """
        with self._refresh_lock:
            return self._refresh_locked()

    def _refresh_locked(self) -> bool:
        now = self._clock()
        self._last_attempt = now
        try:
            provided = self._fetcher(self.reporting_currency)
            rates = invert_rates(provided, self.reporting_currency)
        except StaleRateError as e:
            self._keep_or_fall_back(str(e), now)
            return False
        except Exception as e:
            # Readers and the refresh thread must survive any fetcher failure
            logger.exception(f"Rate fetcher failed unexpectedly: {e}")
            self._keep_or_fall_back(f"Rate feed unavailable: {e}", now)
            return False

        self._table = _RateTable(MappingProxyType(rates), now, RateSource.LIVE)
        logger.info(f"Refreshed {len(rates)} rates against {self.reporting_currency}")
        return True

    def _keep_or_fall_back(self, reason: str, now: datetime) -> None:
        if self._table is not None and self._table.source == RateSource.LIVE:
            logger.warning(f"{reason}; keeping rates fetched at {self._table.fetched_at}")
        else:
            logger.warning(f"{reason}; using built-in fallback rates")
            self._table = _RateTable(FALLBACK_RATES, now, RateSource.FALLBACK)

    def _ensure_fresh(self) -> _RateTable | None:
        table = self._table
        if table is not None and not self._is_stale(table):
            return table

        with self._refresh_lock:
            # Another reader may have refreshed while we waited
            table = self._table
            if table is not None and not self._is_stale(table):
                return table
            if table is None or self._may_retry():
                self._refresh_locked()
            return self._table

    def _is_stale(self, table: _RateTable) -> bool:
        if table.source == RateSource.FALLBACK:
            return True
        return self._clock() - table.fetched_at > self._stale_after

    def _may_retry(self) -> bool:
        if self._last_attempt is None:
            return True
        return self._clock() - self._last_attempt >= self._retry_after

    # Background refresh

    def start(self, interval_seconds: float | None = None) -> None:
        """Start periodic refreshes in a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        interval = interval_seconds or settings.rate_refresh_seconds
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, args=(interval,), name="rate-cache-refresh", daemon=True
        )
        self._thread.start()
        logger.info(f"Rate cache background refresh every {interval}s")

    def stop(self) -> None:
        """Stop the background refresh thread."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    def _run(self, interval: float) -> None:
        self.refresh()
        while not self._stop_event.wait(interval):
            self.refresh()
