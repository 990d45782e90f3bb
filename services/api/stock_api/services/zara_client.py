"""Zara stock-by-location client.

One GET per call against Zara's public (undocumented) stock-sharing endpoint:

    GET {zara_stock_url}?lat=..&lng=..&productIds=123,456

The response is JSON with a `shops` array; each shop carries `id` or `shopId`
(number or string, depending on the shop), `name`, optional `address` and
`distance`, and a `stockStatus` string ("in_stock", "out_of_stock", ...).

Rules:
- A browser-like User-Agent is always sent (requests without one are rejected)
- Every call has a timeout; the client never retries
- Shop IDs are normalized to one canonical string form before matching
"""

from collections.abc import Sequence
from dataclasses import dataclass
import logging
from typing import Any

import httpx

from stock_api.services.errors import InvalidRequest, ProductNotFound, UpstreamTimeout, UpstreamUnavailable
from stock_api.settings import get_settings

logger = logging.getLogger("uvicorn.error")

IN_STOCK_STATUS = "in_stock"


def normalize_store_id(value: Any) -> str | None:
    """Canonical string form of a shop identifier.

    11719, 11719.0, "11719" and " 11719 " all map to "11719".
    Returns None for missing or empty identifiers.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    s = str(value).strip()
    return s or None


def _parse_distance(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ShopStock:
    """One shop entry from the stock-by-location response."""

    shop_id: str | None
    name: str
    address: str | None
    distance: float | None
    stock_status: str | None
    # Canonical forms of every identifier the shop reported (`id`, `shopId`)
    ids: tuple[str, ...] = ()

    @property
    def in_stock(self) -> bool:
        return self.stock_status == IN_STOCK_STATUS

    def matches(self, store_id: Any) -> bool:
        """True if any of the shop's identifiers equals `store_id`."""
        target = normalize_store_id(store_id)
        return target is not None and target in self.ids


def parse_shops(data: Any) -> list[ShopStock]:
    """Normalize the raw response body into ShopStock entries."""
    if not isinstance(data, dict):
        raise UpstreamUnavailable("Unexpected response from Zara stock API")

    raw_shops = data.get("shops") or []
    if not isinstance(raw_shops, list):
        raise UpstreamUnavailable("Unexpected `shops` payload from Zara stock API")

    shops: list[ShopStock] = []
    for raw in raw_shops:
        if not isinstance(raw, dict):
            continue
        ids = tuple(
            dict.fromkeys(
                i for i in (normalize_store_id(raw.get("id")), normalize_store_id(raw.get("shopId"))) if i
            )
        )
        name = raw.get("name")
        address = raw.get("address")
        status = raw.get("stockStatus")
        shops.append(
            ShopStock(
                shop_id=ids[0] if ids else None,
                name=str(name).strip() if name is not None else "",
                address=str(address) if address else None,
                distance=_parse_distance(raw.get("distance")),
                stock_status=str(status) if status is not None else None,
                ids=ids,
            )
        )
    return shops


class ZaraStockClient:
    """Client for the Zara stock-by-location endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        default_timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.zara_stock_url
        self.user_agent = user_agent or settings.zara_user_agent
        self.default_timeout = default_timeout or settings.zara_default_timeout_seconds
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.default_timeout)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def get_shops(
        self,
        product_ids: str | int | Sequence[str | int],
        latitude: float,
        longitude: float,
        timeout: float | None = None,
    ) -> list[ShopStock]:
        """Fetch per-shop stock near a coordinate.

        Args:
            product_ids: One Zara product ID or several (sent comma-joined).
            latitude: Decimal degrees.
            longitude: Decimal degrees.
            timeout: Per-call timeout in seconds; the client default applies when None.

        Returns:
            Shops as reported by Zara, in response order. Empty when Zara knows
            the product but no nearby shop carries it.

        Raises:
            UpstreamTimeout: The request exceeded its timeout.
            ProductNotFound: Zara answered 404.
            UpstreamUnavailable: Transport error, other non-2xx, or unreadable body.
            InvalidRequest: No usable product ID, or coordinates out of range.
        """
        if isinstance(product_ids, (str, int)):
            product_ids = [product_ids]
        ids = [str(p).strip() for p in product_ids if str(p).strip()]
        if not ids:
            raise InvalidRequest("At least one Zara product ID is required", code="MISSING_FIELDS")
        if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
            raise InvalidRequest(f"Invalid coordinates: {latitude},{longitude}", code="INVALID_LOCATION")

        params = {"lat": latitude, "lng": longitude, "productIds": ",".join(ids)}
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        request_kwargs: dict[str, Any] = {"params": params, "headers": headers}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        client = await self._get_client()
        try:
            response = await client.get(self.base_url, **request_kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Zara stock API timeout for productIds={params['productIds']}: {e!r}")
            raise UpstreamTimeout("Zara API timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"Zara stock API transport error: {e!r}")
            raise UpstreamUnavailable(str(e) or e.__class__.__name__) from e

        if response.status_code == 404:
            raise ProductNotFound(
                "Product not found in Zara system",
                detail={"zaraProductId": params["productIds"]},
            )
        if not response.is_success:
            logger.error(f"Zara stock API error: {response.status_code} - {response.text[:200]}")
            raise UpstreamUnavailable(
                f"Zara stock API returned HTTP {response.status_code}",
                detail={"status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamUnavailable("Zara stock API returned a non-JSON body") from e

        shops = parse_shops(data)
        logger.info(f"Zara API returned {len(shops)} stores for productIds={params['productIds']}")
        return shops


# Singleton instance
_client: ZaraStockClient | None = None


def get_stock_client() -> ZaraStockClient:
    """Get Zara stock client singleton."""
    global _client
    if _client is None:
        _client = ZaraStockClient()
    return _client


async def close_stock_client() -> None:
    """Close the singleton's HTTP client (app shutdown)."""
    global _client
    if _client is not None:
        await _client.close()
        _client = None
