"""Schemas for stock lookups, sweeps and the fixed-store listing."""

from datetime import datetime

from pydantic import BaseModel, Field

from stock_api.stores.availability import AvailabilityRecord


class CheckStockRequest(BaseModel):
    """Body of POST /v1/stock/check.

    Fields are optional at the schema level so that missing values reach
    the lookup validation and come back as 400 with a specific message.
    """

    product_id: str | None = Field(alias="productId", default=None, max_length=100)
    zara_product_id: str | int | None = Field(alias="zaraProductId", default=None)
    latitude: float | None = None
    longitude: float | None = None
    force_refresh: bool = Field(alias="forceRefresh", default=False)

    model_config = {"populate_by_name": True}


class StoreResult(BaseModel):
    """One store in a lookup response."""

    store_id: str = Field(alias="storeId")
    store_name: str = Field(alias="storeName")
    address: str | None = None
    in_stock: bool = Field(alias="inStock")
    distance: float | None = None
    last_checked: datetime = Field(alias="lastChecked")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_record(cls, record: AvailabilityRecord) -> "StoreResult":
        return cls(
            store_id=record.store_id,
            store_name=record.store_name,
            address=record.store_address,
            in_stock=record.in_stock,
            distance=record.distance,
            last_checked=record.last_checked,
        )


class CheckStockResponse(BaseModel):
    success: bool = True
    cached: bool
    stores: list[StoreResult]


class StoreRecordResponse(StoreResult):
    """Direct record read, including expiry."""

    expires_at: datetime = Field(alias="expiresAt")
    fresh: bool

    @classmethod
    def from_record_at(cls, record: AvailabilityRecord, now: datetime) -> "StoreRecordResponse":
        return cls(
            store_id=record.store_id,
            store_name=record.store_name,
            address=record.store_address,
            in_stock=record.in_stock,
            distance=record.distance,
            last_checked=record.last_checked,
            expires_at=record.expires_at,
            fresh=record.is_fresh(now),
        )


class FixedStoreProductItem(BaseModel):
    product_id: str = Field(alias="productId")
    title: str
    zara_product_id: str | None = Field(alias="zaraProductId", default=None)
    last_checked: datetime | None = Field(alias="lastChecked", default=None)

    model_config = {"populate_by_name": True}


class FixedStoreProductsResponse(BaseModel):
    brand: str
    store_id: str = Field(alias="storeId")
    products: list[FixedStoreProductItem]

    model_config = {"populate_by_name": True}
