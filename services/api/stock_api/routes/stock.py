"""Stock lookup endpoints.

POST /v1/stock/check - availability of a product at stores near a coordinate
GET  /v1/stock/{productId}/stores/{storeId} - one cached record, fresh or not

Routers are thin: call services for business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Path

from stock_api.routes.deps import get_availability_store, get_stock_client
from stock_api.schemas import (
    CheckStockRequest,
    CheckStockResponse,
    ErrorResponse,
    StoreRecordResponse,
    StoreResult,
)
from stock_api.services.errors import RecordNotFound
from stock_api.services.stock_lookup import check_stock, validate_lookup_request
from stock_api.services.zara_client import ZaraStockClient
from stock_api.stores.availability import AvailabilityStore

router = APIRouter()


@router.post(
    "/check",
    response_model=CheckStockResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def check_stock_endpoint(
    body: CheckStockRequest,
    store: AvailabilityStore = Depends(get_availability_store),
    client: ZaraStockClient = Depends(get_stock_client),
) -> CheckStockResponse:
    """Check stock for a product near the caller.

    Served from the 60-minute cache unless `forceRefresh` is set or nothing
    fresh is cached.

    Raises:
        InvalidRequest (400), ProductNotFound (404), UpstreamTimeout (504),
        UpstreamUnavailable / StoreUnavailable (500). Rendered by the app
        exception handler.
    """
    request = validate_lookup_request(
        product_id=body.product_id,
        zara_product_id=body.zara_product_id,
        latitude=body.latitude,
        longitude=body.longitude,
        force_refresh=body.force_refresh,
    )
    result = await check_stock(request, store=store, client=client)
    return CheckStockResponse(
        success=True,
        cached=result.cached,
        stores=[StoreResult.from_record(r) for r in result.stores],
    )


@router.get(
    "/{product_id}/stores/{store_id}",
    response_model=StoreRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_store_record(
    product_id: str = Path(min_length=1, max_length=100),
    store_id: str = Path(min_length=1),
    store: AvailabilityStore = Depends(get_availability_store),
) -> StoreRecordResponse:
    """Read one availability record regardless of expiry."""
    record = await store.get_record(product_id, store_id)
    if record is None:
        raise RecordNotFound(
            f"No availability record for {product_id}/{store_id}",
            detail={"productId": product_id, "storeId": store_id},
        )
    return StoreRecordResponse.from_record_at(record, now=datetime.now(timezone.utc))
