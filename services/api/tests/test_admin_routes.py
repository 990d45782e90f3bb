"""HTTP-level tests for the sweep trigger and the fixed-store listing."""

import pytest

from stock_api.services.errors import UpstreamTimeout

SOHO = {"id": "11719", "name": "Zara SoHo", "stockStatus": "in_stock"}


def _catalog(repo, *rows: tuple[str, str | None]):
    repo.products = {
        pid: {
            "id": pid,
            "brand": "Zara",
            "title": f"Product {pid}",
            "zara_product_id": zid,
            "in_stock_at_fixed_store": False,
        }
        for pid, zid in rows
    }


@pytest.mark.asyncio
async def test_sweep_with_empty_catalog_returns_message(client, stock_client):
    response = await client.post("/v1/admin/sweeps/soho")

    assert response.status_code == 200
    assert response.json() == {"message": "No Zara products found."}
    assert stock_client.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "PATCH", "DELETE"])
async def test_sweep_accepts_any_method(client, product_repo, method):
    _catalog(product_repo, ("p1", "123"))

    response = await client.request(method, "/v1/admin/sweeps/soho")

    assert response.status_code == 200
    assert response.json()["updatedCount"] == 1


@pytest.mark.asyncio
async def test_sweep_response_details(client, product_repo, stock_client):
    _catalog(product_repo, ("p1", "123"), ("p2", "456"), ("p3", None))
    stock_client.script["123"] = [SOHO]
    stock_client.script["456"] = UpstreamTimeout("Zara API timeout")

    response = await client.post("/v1/admin/sweeps/soho")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["updatedCount"] == 2
    assert data["failedBatches"] == 0
    assert data["skipped"] == ["p3"]
    assert data["details"] == [
        {"productId": "p1", "zaraProductId": "123", "isAvailable": True},
        {"productId": "p2", "error": "Zara API timeout"},
    ]


@pytest.mark.asyncio
async def test_sweep_reports_failed_batches(client, product_repo):
    _catalog(product_repo, ("p1", "123"))
    product_repo.failing_batches = {0}

    response = await client.post("/v1/admin/sweeps/soho")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["failedBatches"] == 1
    assert data["updatedCount"] == 0


@pytest.mark.asyncio
async def test_sweep_conflicts_while_another_runs(client, product_repo, lock_server):
    assert await lock_server.lock("sweep:zara:11719", ttl=300).acquire()
    _catalog(product_repo, ("p1", "123"))

    response = await client.post("/v1/admin/sweeps/soho")

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "SWEEP_IN_PROGRESS"


@pytest.mark.asyncio
async def test_fixed_store_listing_reflects_last_sweep(client, product_repo, stock_client):
    _catalog(product_repo, ("p1", "123"), ("p2", "456"))
    stock_client.script["123"] = [SOHO]

    await client.post("/v1/admin/sweeps/soho")
    response = await client.get("/v1/products/fixed-store")

    assert response.status_code == 200
    data = response.json()
    assert data["brand"] == "Zara"
    assert data["storeId"] == "11719"
    assert [p["productId"] for p in data["products"]] == ["p1"]
    assert data["products"][0]["zaraProductId"] == "123"


@pytest.mark.asyncio
async def test_blank_zara_id_does_not_fail_the_sweep(client, product_repo, stock_client):
    _catalog(product_repo, ("p1", "   "), ("p2", "123"))
    stock_client.script["123"] = [SOHO]

    response = await client.post("/v1/admin/sweeps/soho")

    assert response.status_code == 200
    data = response.json()
    assert data["skipped"] == ["p1"]
    assert data["updatedCount"] == 1
    assert stock_client.calls[0]["product_ids"] == "123"
