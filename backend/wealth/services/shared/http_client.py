"""Shared HTTP plumbing for the external feeds (rates, benchmarks).

Feeds are read-only JSON endpoints. Timeouts, network errors (refused or
reset connections) and throttling/gateway statuses are retried with
exponential backoff; anything else fails on the first answer. Every
failure surfaces as HTTPClientError so callers only have one exception
to degrade on.
"""

import logging
from typing import Any, Self

import httpx
from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Statuses worth another attempt; the feed is expected to recover on its own
TRANSIENT_STATUS_CODES = frozenset({429, 502, 503, 504})


class HTTPClientError(Exception):
    """A feed request failed for good (after retries, if any applied)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        feed: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.feed = feed

    @property
    def transient(self) -> bool:
        return self.status_code is None or self.status_code in TRANSIENT_STATUS_CODES


def _is_transient(response: httpx.Response) -> bool:
    return response.status_code in TRANSIENT_STATUS_CODES


class HTTPClient:
    """JSON feed client with retries and error translation.

    Subclasses set a base URL and a feed name (used in logs and errors):

        class ExchangeRateClient(HTTPClient):
            feed_name = "exchange-rates"

            def fetch_rates(self, base):
                return self.get_json(f"/{base}")
    """

    feed_name = "feed"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        max_attempts: int = 3,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.default_headers = {"Accept": "application/json", **(headers or {})}
        self.max_attempts = max_attempts
        self.retry_wait = wait_exponential(multiplier=1, min=1, max=10)
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url or "",
                timeout=self.timeout,
                headers=self.default_headers,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _send(self, method: str, url: str, params: dict | None) -> httpx.Response:
        return self.client.request(method=method, url=url, params=params)

    def _send_with_retries(self, method: str, url: str, params: dict | None) -> httpx.Response:
        """Send, retrying transient failures. Returns the last response once
        attempts run out so the status can be reported."""
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=(
                retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError))
                | retry_if_result(_is_transient)
            ),
            retry_error_callback=lambda state: state.outcome.result(),
            before_sleep=lambda state: logger.info(
                f"{self.feed_name}: retrying {method} {url} (attempt {state.attempt_number})"
            ),
            reraise=True,
        )
        return retrying(self._send, method, url, params)

    def get(self, url: str, params: dict | None = None) -> httpx.Response:
        """GET a feed URL.

        Raises:
            HTTPClientError: On an error status or any transport failure
        """
        try:
            response = self._send_with_retries("GET", url, params)
        except httpx.TimeoutException as e:
            logger.warning(f"{self.feed_name}: timeout for GET {url}")
            raise HTTPClientError(f"{self.feed_name} timed out: {url}", feed=self.feed_name) from e
        except httpx.ConnectError as e:
            logger.warning(f"{self.feed_name}: connection error for GET {url}: {e}")
            raise HTTPClientError(
                f"{self.feed_name} unreachable: {url}", feed=self.feed_name
            ) from e
        except httpx.TransportError as e:
            logger.warning(f"{self.feed_name}: transport error for GET {url}: {e!r}")
            raise HTTPClientError(
                f"{self.feed_name} connection failed: {url}", feed=self.feed_name
            ) from e

        if response.is_error:
            logger.warning(
                f"{self.feed_name}: HTTP {response.status_code} for GET {url}: {response.text[:200]}"
            )
            raise HTTPClientError(
                f"{self.feed_name} answered HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                response_body=response.text,
                feed=self.feed_name,
            )
        return response

    def get_json(self, url: str, params: dict | None = None) -> Any:
        """GET a feed URL and decode its JSON body."""
        response = self.get(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise HTTPClientError(
                f"{self.feed_name} returned invalid JSON from {url}",
                status_code=response.status_code,
                feed=self.feed_name,
            ) from e
