"""PriceServiceConnection: HTTP client for the upstream Pyth price service.

Endpoints used:
    - /api/latest_price_feeds?ids[]=...  latest prices (source listener)
    - /api/latest_vaas?ids[]=...         signed update payloads (pusher)
"""

from __future__ import annotations

import base64
import binascii
import logging

import httpx

from .PriceConfig import add_leading_0x, remove_leading_0x
from .PriceListener import PriceInfo

logger = logging.getLogger(__name__)


class PriceServiceError(Exception):
    """Raised when the price service request fails or returns bad data."""

    pass


class PriceServiceHTTPError(PriceServiceError):
    """Raised when the price service returns a non-2xx response.

    :ivar status_code: HTTP status code from the failed request.
    """

    def __init__(self, status_code: int, message: str):
        """Initialize the HTTP error.

        :param status_code: HTTP status code.
        :param message: Error message from response.
        """
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


class PriceServiceConnection:
    """Async client for the price service REST API.

    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar endpoint: Base URL of the price service.
    :ivar timeout: Request timeout in seconds.
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        endpoint: str,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the connection.

        :param endpoint: Base URL (e.g., "https://hermes.pyth.network").
        :param timeout: Request timeout in seconds (default: 10).
        :param client: Optional pre-built client, mainly for tests.
        """
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, price_ids: list[str]) -> httpx.Response:
        """GET a price service path for a list of feed ids.

        :raises PriceServiceHTTPError: On non-2xx response.
        :raises PriceServiceError: On network/timeout errors.
        """
        url = f"{self.endpoint}{path}"
        params = [("ids[]", add_leading_0x(price_id)) for price_id in price_ids]
        try:
            response = await self._get_client().get(
                url, params=params, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise PriceServiceError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise PriceServiceError(f"Request failed: {e}") from e

        if not response.is_success:
            logger.debug(
                "HTTP GET %s failed with status %s: %s",
                url,
                response.status_code,
                response.text[:200],
            )
            raise PriceServiceHTTPError(response.status_code, response.text[:200])
        return response

    async def get_price_feeds_update_data(self, price_ids: list[str]) -> list[bytes]:
        """Fetch signed update payloads for exactly the given feeds.

        :param price_ids: Feed ids, with or without ``0x``.
        :returns: One binary payload per feed, in response order.
        :raises PriceServiceError: On request failure or undecodable data.
        """
        response = await self._get("/api/latest_vaas", price_ids)
        try:
            return [base64.b64decode(vaa, validate=True) for vaa in response.json()]
        except (ValueError, TypeError, binascii.Error) as e:
            raise PriceServiceError(f"Invalid update data response: {e}") from e

    async def get_latest_price_feeds(self, price_ids: list[str]) -> dict[str, PriceInfo]:
        """Fetch the latest prices for the given feeds.

        :param price_ids: Feed ids, with or without ``0x``.
        :returns: Dict mapping feed id (no ``0x``, lower-case) to PriceInfo.
            Malformed entries are skipped.
        :raises PriceServiceError: On request failure.
        """
        response = await self._get("/api/latest_price_feeds", price_ids)
        try:
            feeds = response.json()
        except ValueError as e:
            raise PriceServiceError(f"Invalid price feeds response: {e}") from e

        results: dict[str, PriceInfo] = {}
        for feed in feeds:
            try:
                price = feed["price"]
                price_id = remove_leading_0x(feed["id"]).lower()
                results[price_id] = PriceInfo(
                    price=int(price["price"]),
                    conf=int(price["conf"]),
                    publish_time=int(price["publish_time"]),
                )
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Failed to parse price feed {feed!r}: {e}")
        return results
