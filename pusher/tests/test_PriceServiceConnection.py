"""Unit tests for PriceServiceConnection."""

import asyncio
import base64

import httpx
import pytest

from pusher.src.PriceListener import PriceInfo
from pusher.src.PriceServiceConnection import (
    PriceServiceConnection,
    PriceServiceError,
    PriceServiceHTTPError,
)


def make_connection(handler) -> PriceServiceConnection:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PriceServiceConnection("https://hermes.example/", client=client)


class TestGetPriceFeedsUpdateData:
    """Test update payload fetching."""

    def test_decodes_vaas(self) -> None:
        """Base64 payloads should be decoded to bytes, ids sent with 0x."""
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["ids"] = request.url.params.get_list("ids[]")
            return httpx.Response(
                200,
                json=[base64.b64encode(b"vaa-a").decode(), base64.b64encode(b"vaa-b").decode()],
            )

        connection = make_connection(handler)
        data = asyncio.run(connection.get_price_feeds_update_data(["aa", "0xbb"]))

        assert data == [b"vaa-a", b"vaa-b"]
        assert seen["path"] == "/api/latest_vaas"
        assert seen["ids"] == ["0xaa", "0xbb"]

    def test_http_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        connection = make_connection(handler)
        with pytest.raises(PriceServiceHTTPError) as exc_info:
            asyncio.run(connection.get_price_feeds_update_data(["aa"]))

        assert exc_info.value.status_code == 503

    def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        connection = make_connection(handler)
        with pytest.raises(PriceServiceError, match="Request failed"):
            asyncio.run(connection.get_price_feeds_update_data(["aa"]))

    def test_invalid_payload(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["not base64!"])

        connection = make_connection(handler)
        with pytest.raises(PriceServiceError, match="Invalid update data"):
            asyncio.run(connection.get_price_feeds_update_data(["aa"]))


class TestGetLatestPriceFeeds:
    """Test latest price parsing."""

    def test_parses_prices(self) -> None:
        """Malformed entries should be skipped, ids normalized."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=[
                    {
                        "id": "AA",
                        "price": {
                            "price": "6512345",
                            "conf": "1234",
                            "expo": -5,
                            "publish_time": 1700000000,
                        },
                    },
                    {"id": "bb"},
                ],
            )

        connection = make_connection(handler)
        prices = asyncio.run(connection.get_latest_price_feeds(["aa", "bb"]))

        assert prices == {"aa": PriceInfo(6512345, 1234, 1700000000)}
