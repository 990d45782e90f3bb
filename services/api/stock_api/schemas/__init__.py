"""Pydantic schemas for API request/response validation."""

from stock_api.schemas.common import ErrorDetail, ErrorResponse
from stock_api.schemas.stock import (
    CheckStockRequest,
    CheckStockResponse,
    FixedStoreProductItem,
    FixedStoreProductsResponse,
    StoreRecordResponse,
    StoreResult,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "CheckStockRequest",
    "CheckStockResponse",
    "FixedStoreProductItem",
    "FixedStoreProductsResponse",
    "StoreRecordResponse",
    "StoreResult",
]
