"""Currency rate feed client.

The feed quotes every currency against a base currency as
"foreign units per 1 base unit" (e.g. base BRL -> USD 0.2). Callers that
need "base units per 1 foreign unit" must invert the values.
"""

import logging
from decimal import Decimal, InvalidOperation

from wealth.config import settings
from wealth.services.shared.http_client import HTTPClient, HTTPClientError

logger = logging.getLogger(__name__)


class ExchangeRateClient(HTTPClient):
    """Client for the latest-rates endpoint of the exchange rate feed.

    Usage:
        with ExchangeRateClient() as client:
            rates = client.fetch_rates("BRL")  # {"USD": Decimal("0.2"), ...}
    """

    feed_name = "exchange-rates"

    def __init__(self, base_url: str | None = None, timeout: float = 10.0):
        super().__init__(base_url=base_url or settings.exchange_rate_api_url, timeout=timeout)

    def fetch_rates(self, base_currency: str) -> dict[str, Decimal]:
        """Fetch the latest rate table for a base currency.

        Args:
            base_currency: Currency the table is quoted against (e.g. "BRL")

        Returns:
            Mapping of currency code -> foreign units per 1 base unit

        Raises:
            HTTPClientError: If the feed fails or returns an unexpected payload
        """
        payload = self.get_json(f"/{base_currency}")

        raw_rates = payload.get("rates") if isinstance(payload, dict) else None
        if not isinstance(raw_rates, dict) or not raw_rates:
            raise HTTPClientError(f"Rate feed returned no rates for {base_currency}")

        rates: dict[str, Decimal] = {}
        for code, value in raw_rates.items():
            try:
                rates[code.upper()] = Decimal(str(value))
            except (InvalidOperation, AttributeError):
                logger.warning(f"Ignoring malformed rate for {code}: {value!r}")

        logger.debug(f"Fetched {len(rates)} rates against {base_currency}")
        return rates
