"""Error taxonomy for stock lookups and sweeps.

Every error carries a machine-readable code and the HTTP status the API maps
it to. None of them leave partial writes behind.
"""

from typing import Any


class StockCheckError(RuntimeError):
    """Base class for errors surfaced to API callers."""

    code = "STOCK_CHECK_FAILED"
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.detail = detail


class InvalidRequest(StockCheckError):
    """Caller error: missing or malformed input."""

    code = "INVALID_REQUEST"
    status_code = 400


class ProductNotFound(StockCheckError):
    """Upstream does not know the product."""

    code = "PRODUCT_NOT_FOUND"
    status_code = 404


class UpstreamTimeout(StockCheckError):
    """Upstream did not answer within the request timeout."""

    code = "UPSTREAM_TIMEOUT"
    status_code = 504


class UpstreamUnavailable(StockCheckError):
    """Any other upstream failure (transport error, non-2xx, bad payload)."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 500


class StoreUnavailable(StockCheckError):
    """Persistence layer failure."""

    code = "STORE_UNAVAILABLE"
    status_code = 500


class SweepInProgress(StockCheckError):
    """Another sweep holds the lock for the same brand and store."""

    code = "SWEEP_IN_PROGRESS"
    status_code = 409


class RecordNotFound(StockCheckError):
    """No cached availability record for the product and store."""

    code = "RECORD_NOT_FOUND"
    status_code = 404
