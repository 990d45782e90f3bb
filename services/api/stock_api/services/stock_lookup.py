"""On-demand stock lookup with a 60-minute availability cache.

Flow per request:
1. Validate input (both IDs, non-zero coordinates)
2. Unless force_refresh: return fresh cached records if any exist
3. Call Zara stock-by-location (10s timeout)
4. Normalize shops to store records, upsert all of them in one statement,
   and answer from the records just written

Concurrency: requests are not deduplicated. Two simultaneous misses for the
same product both call Zara and both write; the later commit wins.
"""

from dataclasses import dataclass
import logging
import math
import re
from typing import Any

from stock_api.services.errors import InvalidRequest
from stock_api.services.zara_client import ShopStock, ZaraStockClient
from stock_api.settings import get_settings
from stock_api.stores.availability import AvailabilityRecord, AvailabilityStore, AvailabilityUpdate

logger = logging.getLogger("uvicorn.error")

# Width of the product_id columns
PRODUCT_ID_MAX_LENGTH = 100


@dataclass(frozen=True)
class LookupRequest:
    """Validated lookup input.

    `product_id` partitions the cache; `zara_product_id` addresses Zara's API.
    """

    product_id: str
    zara_product_id: str
    latitude: float
    longitude: float
    force_refresh: bool = False


@dataclass(frozen=True)
class LookupResult:
    cached: bool
    stores: list[AvailabilityRecord]


def _clean_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    s = str(value).strip()
    return s or None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_lookup_request(
    product_id: Any,
    zara_product_id: Any,
    latitude: Any,
    longitude: Any,
    force_refresh: Any = False,
) -> LookupRequest:
    """Build a LookupRequest or raise InvalidRequest.

    Zero coordinates count as missing, so (0, 0) is never accepted.
    """
    pid = _clean_id(product_id)
    zid = _clean_id(zara_product_id)
    if not pid or not zid:
        raise InvalidRequest(
            "Missing required fields: productId, zaraProductId",
            code="MISSING_FIELDS",
        )
    if len(pid) > PRODUCT_ID_MAX_LENGTH:
        raise InvalidRequest(
            f"productId must be at most {PRODUCT_ID_MAX_LENGTH} characters",
            code="INVALID_REQUEST",
        )

    if not latitude or not longitude:
        raise InvalidRequest("Missing location: latitude, longitude", code="MISSING_LOCATION")
    if not _is_number(latitude) or not _is_number(longitude):
        raise InvalidRequest("Location must be numeric: latitude, longitude", code="INVALID_LOCATION")
    if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
        raise InvalidRequest(
            "Location out of range: latitude, longitude",
            code="INVALID_LOCATION",
            detail={"latitude": latitude, "longitude": longitude},
        )

    return LookupRequest(
        product_id=pid,
        zara_product_id=zid,
        latitude=float(latitude),
        longitude=float(longitude),
        force_refresh=bool(force_refresh),
    )


def derive_store_id(shop: ShopStock) -> str:
    """Stable store key: the shop's own ID, else a key derived from its name."""
    if shop.shop_id:
        return shop.shop_id
    normalized = re.sub(r"\s+", "_", shop.name.strip())
    return f"store_{normalized or 'unnamed'}"


def shops_to_updates(shops: list[ShopStock]) -> list[AvailabilityUpdate]:
    """Normalize shops into store updates, one per store ID (last one wins)."""
    by_store: dict[str, AvailabilityUpdate] = {}
    for shop in shops:
        store_id = derive_store_id(shop)
        by_store.pop(store_id, None)
        by_store[store_id] = AvailabilityUpdate(
            store_id=store_id,
            store_name=shop.name,
            store_address=shop.address,
            in_stock=shop.in_stock,
            distance=shop.distance,
        )
    return list(by_store.values())


async def check_stock(
    request: LookupRequest,
    *,
    store: AvailabilityStore,
    client: ZaraStockClient,
    timeout: float | None = None,
) -> LookupResult:
    """Answer one lookup from cache or from Zara.

    Upstream and store errors propagate unchanged; nothing is written when
    the Zara call fails.
    """
    logger.info(
        f"Stock check requested for product {request.product_id} "
        f"(Zara ID: {request.zara_product_id}) near {request.latitude},{request.longitude}"
    )

    if not request.force_refresh:
        fresh = await store.query_fresh(request.product_id)
        if fresh:
            logger.info(f"Cache HIT - returning {len(fresh)} cached stores for product {request.product_id}")
            return LookupResult(cached=True, stores=fresh)

    logger.info(f"Cache MISS (force_refresh={request.force_refresh}) - calling Zara API")
    if timeout is None:
        timeout = get_settings().zara_lookup_timeout_seconds
    shops = await client.get_shops(
        request.zara_product_id,
        request.latitude,
        request.longitude,
        timeout=timeout,
    )

    updates = shops_to_updates(shops)
    records = await store.upsert_many(request.product_id, updates)
    logger.info(f"Cached {len(records)} stores for product {request.product_id}")
    return LookupResult(cached=False, stores=records)
