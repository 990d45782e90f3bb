"""SoHo sweep: refresh the fixed-store stock flag for every product of a brand.

Behavior:
- Products are processed strictly one at a time, with a pause between Zara calls
- A product without a Zara ID is skipped (catalog gap, not a failure)
- A per-product Zara error records the error and writes the flag as false
- The flag is true only when the fixed store itself reports "in_stock"
- Flag updates are committed in chunks of `sweep_batch_size`, one transaction
  per chunk; a failed chunk does not roll back the chunks before it
- A Redis token lock keeps two sweeps for the same brand/store from overlapping;
  its TTL is reset after every product and only the holder can release it.
  Without Redis the sweep runs unguarded
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
import logging

from redis.asyncio.lock import Lock
from redis.exceptions import LockNotOwnedError, RedisError

from stock_api.services.errors import StockCheckError, StoreUnavailable, SweepInProgress
from stock_api.services.zara_client import ZaraStockClient
from stock_api.settings import Settings, get_settings
from stock_api.stores.products import FlagUpdate, ProductRepository
from stock_api.stores.redis import sweep_lock

logger = logging.getLogger("uvicorn.error")


@dataclass
class SweepOutcome:
    """Per-product result of one sweep."""

    product_id: str
    zara_product_id: str | None = None
    is_available: bool = False
    error: str | None = None


@dataclass
class SweepSummary:
    """Diagnostic payload of one sweep (not a transactional guarantee)."""

    brand: str
    store_id: str
    products_found: int = 0
    updated_count: int = 0
    failed_batches: int = 0
    details: list[SweepOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed_batches == 0


def _chunks(items: list[FlagUpdate], size: int) -> list[list[FlagUpdate]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


async def run_soho_sweep(
    *,
    products: ProductRepository,
    client: ZaraStockClient,
    settings: Settings | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    heartbeat: Callable[[], Awaitable[None]] | None = None,
) -> SweepSummary:
    """Run one sweep without locking. See module docstring for semantics.

    `heartbeat` is awaited after every upstream call (the guarded
    sweep resets its lock TTL there).
    """
    settings = settings or get_settings()
    store_id = settings.sweep_store_id
    summary = SweepSummary(brand=settings.sweep_brand, store_id=store_id)

    logger.info(f"Starting stock sweep for brand={settings.sweep_brand}, store={store_id}")
    refs = await products.list_by_brand(settings.sweep_brand)
    summary.products_found = len(refs)
    if not refs:
        return summary

    queued: list[FlagUpdate] = []
    for ref in refs:
        zara_id = (ref.zara_product_id or "").strip()
        if not zara_id:
            logger.warning(f"Skipping {ref.product_id}: no zaraProductId")
            summary.skipped.append(ref.product_id)
            continue

        outcome = SweepOutcome(product_id=ref.product_id, zara_product_id=zara_id)
        try:
            # No per-call timeout: the client default applies.
            shops = await client.get_shops(
                zara_id,
                settings.sweep_latitude,
                settings.sweep_longitude,
            )
            fixed_store = next((s for s in shops if s.matches(store_id)), None)
            outcome.is_available = fixed_store is not None and fixed_store.in_stock
        except StockCheckError as e:
            logger.warning(f"Error checking {ref.product_id}: {e.message}")
            outcome.error = e.message
            outcome.is_available = False

        summary.details.append(outcome)
        queued.append(FlagUpdate(product_id=ref.product_id, in_stock=outcome.is_available))

        if settings.sweep_delay_seconds > 0:
            await sleep(settings.sweep_delay_seconds)
        if heartbeat is not None:
            await heartbeat()

    for chunk in _chunks(queued, settings.sweep_batch_size):
        try:
            written = await products.apply_fixed_store_flags(chunk)
        except StoreUnavailable as e:
            summary.failed_batches += 1
            logger.error(f"Sweep batch of {len(chunk)} flag updates failed: {e.message}")
            continue
        summary.updated_count += written
        logger.info(f"Committed {written} flag updates")

    logger.info(
        f"Sweep complete. Updated {summary.updated_count} items for store {store_id} "
        f"(skipped={len(summary.skipped)}, failed_batches={summary.failed_batches})"
    )
    return summary


async def run_guarded_soho_sweep(
    *,
    products: ProductRepository,
    client: ZaraStockClient,
    settings: Settings | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> SweepSummary:
    """Run one sweep under the Redis sweep lock.

    Raises:
        SweepInProgress: another sweep holds the lock.
    """
    settings = settings or get_settings()
    lock_key = f"sweep:{settings.sweep_brand.lower()}:{settings.sweep_store_id}"

    lock: Lock | None = None
    try:
        lock = sweep_lock(lock_key, ttl=settings.sweep_lock_ttl_seconds)
        acquired = await lock.acquire()
    except (RuntimeError, RedisError) as e:
        logger.warning(f"Sweep lock unavailable, running unguarded: {e}")
        lock = None
        acquired = False

    if lock is not None and not acquired:
        raise SweepInProgress(
            "A sweep is already running for this store",
            detail={"brand": settings.sweep_brand, "storeId": settings.sweep_store_id},
        )

    async def keep_lock() -> None:
        try:
            await lock.reacquire()
        except RedisError as e:
            logger.warning(f"Sweep lock {lock_key} lost: {e}")

    try:
        return await run_soho_sweep(
            products=products,
            client=client,
            settings=settings,
            sleep=sleep,
            heartbeat=keep_lock if lock is not None else None,
        )
    finally:
        if lock is not None:
            try:
                await lock.release()
            except LockNotOwnedError:
                logger.warning(f"Sweep lock {lock_key} expired and was taken over; left in place")
            except RedisError as e:
                logger.warning(f"Failed to release sweep lock {lock_key}: {e}")
