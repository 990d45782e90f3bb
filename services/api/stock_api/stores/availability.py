"""Availability store: per product x store availability with expiry.

Operations:
- query_fresh: all records of a product with expires_at > now (one SELECT)
- upsert_many: all records of a refresh in one INSERT .. ON CONFLICT statement
- get_record: one record by (product, store), fresh or not

Timestamps are assigned by Postgres (now()), never by the caller. On conflict
every record field is replaced; optional fields missing from the write become
NULL.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import Insert, insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError

from stock_api.models import StoreAvailability
from stock_api.services.errors import StoreUnavailable
from stock_api.stores.postgres import DatabaseNotInitialized, get_session

logger = logging.getLogger("uvicorn.error")

DEFAULT_TTL = timedelta(minutes=60)


@dataclass(frozen=True)
class AvailabilityUpdate:
    """One store's availability as written by a refresh (no timestamps)."""

    store_id: str
    store_name: str
    in_stock: bool
    store_address: str | None = None
    distance: float | None = None


@dataclass(frozen=True)
class AvailabilityRecord:
    """One persisted availability record."""

    store_id: str
    store_name: str
    in_stock: bool
    last_checked: datetime
    expires_at: datetime
    store_address: str | None = None
    distance: float | None = None

    def is_fresh(self, now: datetime) -> bool:
        return self.expires_at > now


class AvailabilityStore(Protocol):
    """Handle the orchestrators use for cached availability."""

    async def query_fresh(self, product_id: str, now: datetime | None = None) -> list[AvailabilityRecord]: ...

    async def upsert_many(self, product_id: str, updates: list[AvailabilityUpdate]) -> list[AvailabilityRecord]: ...

    async def get_record(self, product_id: str, store_id: str) -> AvailabilityRecord | None: ...


_RECORD_COLUMNS = (
    StoreAvailability.store_id,
    StoreAvailability.store_name,
    StoreAvailability.store_address,
    StoreAvailability.in_stock,
    StoreAvailability.distance,
    StoreAvailability.last_checked,
    StoreAvailability.expires_at,
)


def _row_to_record(row) -> AvailabilityRecord:
    return AvailabilityRecord(
        store_id=row.store_id,
        store_name=row.store_name,
        store_address=row.store_address,
        in_stock=row.in_stock,
        distance=row.distance,
        last_checked=row.last_checked,
        expires_at=row.expires_at,
    )


def build_upsert_statement(
    product_id: str,
    updates: list[AvailabilityUpdate],
    ttl: timedelta = DEFAULT_TTL,
) -> Insert:
    """Build the multi-row upsert for one product's refresh.

    Timestamps are SQL expressions so the database clock stamps every row
    with the same transaction time.
    """
    stmt = pg_insert(StoreAvailability).values(
        [
            {
                "product_id": product_id,
                "store_id": u.store_id,
                "store_name": u.store_name,
                "store_address": u.store_address,
                "in_stock": u.in_stock,
                "distance": u.distance,
                "last_checked": func.now(),
                "expires_at": func.now() + ttl,
            }
            for u in updates
        ]
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[StoreAvailability.product_id, StoreAvailability.store_id],
        set_={
            "store_name": stmt.excluded.store_name,
            "store_address": stmt.excluded.store_address,
            "in_stock": stmt.excluded.in_stock,
            "distance": stmt.excluded.distance,
            "last_checked": stmt.excluded.last_checked,
            "expires_at": stmt.excluded.expires_at,
        },
    )
    return stmt.returning(*_RECORD_COLUMNS)


class PostgresAvailabilityStore:
    """Availability store backed by the `store_availability` table."""

    def __init__(self, ttl: timedelta = DEFAULT_TTL):
        self.ttl = ttl

    async def query_fresh(self, product_id: str, now: datetime | None = None) -> list[AvailabilityRecord]:
        """Records for `product_id` whose expires_at is strictly after `now`.

        `now` defaults to the database clock. An empty list is the cache-miss signal.
        """
        cutoff = now if now is not None else func.now()
        query = (
            select(*_RECORD_COLUMNS)
            .where(StoreAvailability.product_id == product_id)
            .where(StoreAvailability.expires_at > cutoff)
            .order_by(StoreAvailability.distance.asc().nulls_last(), StoreAvailability.store_id)
        )
        try:
            async with get_session() as session:
                result = await session.execute(query)
                return [_row_to_record(row) for row in result.all()]
        except (SQLAlchemyError, OSError, DatabaseNotInitialized) as e:
            logger.error(f"Availability read failed for product={product_id}: {e!r}")
            raise StoreUnavailable("Availability store read failed") from e

    async def upsert_many(self, product_id: str, updates: list[AvailabilityUpdate]) -> list[AvailabilityRecord]:
        """Write all records of one refresh atomically.

        Returns the records as written, in the order of `updates`.
        """
        if not updates:
            return []

        stmt = build_upsert_statement(product_id, updates, self.ttl)
        try:
            async with get_session() as session:
                result = await session.execute(stmt)
                written = {row.store_id: _row_to_record(row) for row in result.all()}
        except (SQLAlchemyError, OSError, DatabaseNotInitialized) as e:
            logger.error(f"Availability write failed for product={product_id}: {e!r}")
            raise StoreUnavailable("Availability store write failed") from e

        return [written[u.store_id] for u in updates if u.store_id in written]

    async def get_record(self, product_id: str, store_id: str) -> AvailabilityRecord | None:
        """Direct lookup, ignoring expiry."""
        query = (
            select(*_RECORD_COLUMNS)
            .where(StoreAvailability.product_id == product_id)
            .where(StoreAvailability.store_id == store_id)
        )
        try:
            async with get_session() as session:
                result = await session.execute(query)
                row = result.one_or_none()
        except (SQLAlchemyError, OSError, DatabaseNotInitialized) as e:
            logger.error(f"Availability read failed for {product_id}/{store_id}: {e!r}")
            raise StoreUnavailable("Availability store read failed") from e
        return _row_to_record(row) if row is not None else None
