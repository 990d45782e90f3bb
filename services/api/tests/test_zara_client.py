"""Tests for the Zara stock client (httpx MockTransport, no network)."""

import httpx
import pytest

from stock_api.services.errors import InvalidRequest, ProductNotFound, UpstreamTimeout, UpstreamUnavailable
from stock_api.services.zara_client import ZaraStockClient, normalize_store_id, parse_shops

BASE_URL = "https://zara.test/us/en/stock-sharing/shops/by-physical-stock"


def _client(handler, timeout: float = 30.0) -> ZaraStockClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), timeout=timeout)
    return ZaraStockClient(base_url=BASE_URL, user_agent="TestAgent/1.0", http_client=http_client)


@pytest.mark.asyncio
async def test_get_shops_sends_coordinates_ids_and_user_agent():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"shops": []})

    client = _client(handler)
    await client.get_shops(["123", 456], 40.7, -74.0)

    request = seen[0]
    assert request.method == "GET"
    assert request.url.params["lat"] == "40.7"
    assert request.url.params["lng"] == "-74.0"
    assert request.url.params["productIds"] == "123,456"
    assert request.headers["User-Agent"] == "TestAgent/1.0"


@pytest.mark.asyncio
async def test_get_shops_normalizes_shops():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "shops": [
                    {"id": 11719, "name": "Zara SoHo", "address": "503 Broadway", "distance": 0.4, "stockStatus": "in_stock"},
                    {"shopId": "2001", "name": "Zara Fifth Ave", "stockStatus": "out_of_stock"},
                ]
            },
        )

    shops = await _client(handler).get_shops("123", 40.7, -74.0)

    assert [s.shop_id for s in shops] == ["11719", "2001"]
    assert shops[0].in_stock is True
    assert shops[0].address == "503 Broadway"
    assert shops[0].distance == 0.4
    assert shops[1].in_stock is False
    assert shops[1].address is None
    assert shops[1].distance is None


@pytest.mark.asyncio
async def test_missing_shops_key_is_empty_result():
    shops = await _client(lambda r: httpx.Response(200, json={})).get_shops("123", 40.7, -74.0)
    assert shops == []


@pytest.mark.asyncio
async def test_per_call_timeout_overrides_client_default():
    timeouts: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        timeouts.append(request.extensions["timeout"])
        return httpx.Response(200, json={"shops": []})

    client = _client(handler, timeout=30.0)
    await client.get_shops("123", 40.7, -74.0, timeout=10.0)
    await client.get_shops("123", 40.7, -74.0)

    assert timeouts[0]["read"] == 10.0
    assert timeouts[1]["read"] == 30.0


@pytest.mark.asyncio
async def test_timeout_raises_upstream_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamTimeout):
        await _client(handler).get_shops("123", 40.7, -74.0)


@pytest.mark.asyncio
async def test_404_raises_product_not_found():
    with pytest.raises(ProductNotFound):
        await _client(lambda r: httpx.Response(404, text="not found")).get_shops("999", 40.7, -74.0)


@pytest.mark.asyncio
async def test_other_status_raises_upstream_unavailable():
    with pytest.raises(UpstreamUnavailable) as exc_info:
        await _client(lambda r: httpx.Response(503, text="busy")).get_shops("123", 40.7, -74.0)
    assert "503" in exc_info.value.message


@pytest.mark.asyncio
async def test_transport_error_raises_upstream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await _client(handler).get_shops("123", 40.7, -74.0)
    assert "connection refused" in exc_info.value.message


@pytest.mark.asyncio
async def test_non_json_body_raises_upstream_unavailable():
    with pytest.raises(UpstreamUnavailable):
        await _client(lambda r: httpx.Response(200, text="<html>blocked</html>")).get_shops("123", 40.7, -74.0)


@pytest.mark.asyncio
async def test_missing_product_id_is_rejected_before_the_call():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"shops": []})

    with pytest.raises(InvalidRequest) as exc_info:
        await _client(handler).get_shops("  ", 40.7, -74.0)
    assert exc_info.value.code == "MISSING_FIELDS"
    assert calls == []


def test_normalize_store_id_unifies_representations():
    assert normalize_store_id(11719) == "11719"
    assert normalize_store_id(11719.0) == "11719"
    assert normalize_store_id(" 11719 ") == "11719"
    assert normalize_store_id("") is None
    assert normalize_store_id(None) is None
    assert normalize_store_id(True) is None


def test_shop_matches_either_id_field():
    shops = parse_shops(
        {
            "shops": [
                {"id": "A-1", "shopId": 11719, "name": "Both", "stockStatus": "in_stock"},
                {"id": 11719.0, "name": "Float id", "stockStatus": "in_stock"},
                {"shopId": "2001", "name": "Other", "stockStatus": "in_stock"},
            ]
        }
    )
    assert shops[0].matches("11719")
    assert shops[0].matches(11719)
    assert shops[0].shop_id == "A-1"
    assert shops[1].matches(11719)
    assert not shops[2].matches(11719)


def test_parse_shops_rejects_non_object_payload():
    with pytest.raises(UpstreamUnavailable):
        parse_shops(["not", "an", "object"])


@pytest.mark.asyncio
async def test_out_of_range_coordinates_are_rejected_before_the_call():
    with pytest.raises(InvalidRequest) as exc_info:
        await _client(lambda r: httpx.Response(200, json={"shops": []})).get_shops("123", 95.0, -74.0)
    assert exc_info.value.code == "INVALID_LOCATION"
