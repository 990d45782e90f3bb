"""Product repository: brand enumeration and the fixed-store flag."""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from stock_api.models import Product
from stock_api.services.errors import StoreUnavailable
from stock_api.stores.postgres import DatabaseNotInitialized, get_session

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class ProductRef:
    """The two identifiers a sweep needs for one product."""

    product_id: str
    zara_product_id: str | None


@dataclass(frozen=True)
class FixedStoreProduct:
    """A product listed as in stock at the fixed store."""

    product_id: str
    title: str
    zara_product_id: str | None
    last_checked_at_fixed_store: datetime | None


@dataclass(frozen=True)
class FlagUpdate:
    product_id: str
    in_stock: bool


class ProductRepository(Protocol):
    async def list_by_brand(self, brand: str) -> list[ProductRef]: ...

    async def apply_fixed_store_flags(self, updates: list[FlagUpdate]) -> int: ...

    async def list_in_stock_at_fixed_store(self, brand: str) -> list[FixedStoreProduct]: ...


class PostgresProductRepository:
    """Product access backed by the `products` table."""

    async def list_by_brand(self, brand: str) -> list[ProductRef]:
        """All products of `brand`, ordered by ID."""
        query = select(Product.id, Product.zara_product_id).where(Product.brand == brand).order_by(Product.id)
        try:
            async with get_session() as session:
                result = await session.execute(query)
                return [
                    ProductRef(product_id=row.id, zara_product_id=(row.zara_product_id or "").strip() or None)
                    for row in result.all()
                ]
        except (SQLAlchemyError, OSError, DatabaseNotInitialized) as e:
            logger.error(f"Product enumeration failed for brand={brand}: {e!r}")
            raise StoreUnavailable("Product store read failed") from e

    async def apply_fixed_store_flags(self, updates: list[FlagUpdate]) -> int:
        """Write a batch of flag updates in one transaction.

        The check timestamp is the database clock. Returns the number of
        products updated.
        """
        if not updates:
            return 0
        try:
            async with get_session() as session:
                updated = 0
                for u in updates:
                    result = await session.execute(
                        update(Product)
                        .where(Product.id == u.product_id)
                        .values(
                            in_stock_at_fixed_store=u.in_stock,
                            last_checked_at_fixed_store=func.now(),
                        )
                    )
                    updated += result.rowcount or 0
        except (SQLAlchemyError, OSError, DatabaseNotInitialized) as e:
            logger.error(f"Fixed-store flag batch failed ({len(updates)} products): {e!r}")
            raise StoreUnavailable("Product flag write failed") from e
        return updated

    async def list_in_stock_at_fixed_store(self, brand: str) -> list[FixedStoreProduct]:
        query = (
            select(Product)
            .where(Product.brand == brand)
            .where(Product.in_stock_at_fixed_store.is_(True))
            .order_by(Product.title)
        )
        try:
            async with get_session() as session:
                result = await session.execute(query)
                products = result.scalars().all()
        except (SQLAlchemyError, OSError, DatabaseNotInitialized) as e:
            logger.error(f"Fixed-store listing failed for brand={brand}: {e!r}")
            raise StoreUnavailable("Product store read failed") from e
        return [
            FixedStoreProduct(
                product_id=p.id,
                title=p.title,
                zara_product_id=p.zara_product_id,
                last_checked_at_fixed_store=p.last_checked_at_fixed_store,
            )
            for p in products
        ]
