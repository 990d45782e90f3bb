"""Shared fixtures: in-memory stores, a scripted Zara client, and an HTTP client."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import LockError, LockNotOwnedError

from stock_api.main import app
from stock_api.routes import deps
from stock_api.services import soho_sweep
from stock_api.services.errors import StoreUnavailable
from stock_api.services.zara_client import ShopStock, parse_shops
from stock_api.settings import Settings
from stock_api.stores.availability import AvailabilityRecord, AvailabilityUpdate
from stock_api.stores.products import FixedStoreProduct, FlagUpdate, ProductRef


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class InMemoryAvailabilityStore:
    """Availability store with the same contract as the Postgres one."""

    def __init__(self, clock: FakeClock, ttl: timedelta = timedelta(minutes=60)):
        self.clock = clock
        self.ttl = ttl
        self.records: dict[tuple[str, str], AvailabilityRecord] = {}
        self.upsert_calls: list[tuple[str, list[AvailabilityUpdate]]] = []
        self.fail_writes = False

    async def query_fresh(self, product_id, now=None):
        now = now or self.clock()
        return [r for (pid, _), r in self.records.items() if pid == product_id and r.expires_at > now]

    async def upsert_many(self, product_id, updates):
        if self.fail_writes:
            raise StoreUnavailable("Availability store write failed")
        self.upsert_calls.append((product_id, list(updates)))
        now = self.clock()
        written = []
        for u in updates:
            record = AvailabilityRecord(
                store_id=u.store_id,
                store_name=u.store_name,
                store_address=u.store_address,
                in_stock=u.in_stock,
                distance=u.distance,
                last_checked=now,
                expires_at=now + self.ttl,
            )
            self.records[(product_id, u.store_id)] = record
            written.append(record)
        return written

    async def get_record(self, product_id, store_id):
        return self.records.get((product_id, store_id))


class InMemoryProductRepository:
    def __init__(self, products: list[dict] | None = None):
        self.products = {p["id"]: dict(p) for p in (products or [])}
        self.flag_batches: list[list[FlagUpdate]] = []
        self.failing_batches: set[int] = set()

    async def list_by_brand(self, brand):
        return [
            ProductRef(product_id=p["id"], zara_product_id=p.get("zara_product_id"))
            for p in sorted(self.products.values(), key=lambda p: p["id"])
            if p.get("brand") == brand
        ]

    async def apply_fixed_store_flags(self, updates):
        batch_index = len(self.flag_batches)
        self.flag_batches.append(list(updates))
        if batch_index in self.failing_batches:
            raise StoreUnavailable("Product flag write failed")
        for u in updates:
            self.products[u.product_id]["in_stock_at_fixed_store"] = u.in_stock
        return len(updates)

    async def list_in_stock_at_fixed_store(self, brand):
        return [
            FixedStoreProduct(
                product_id=p["id"],
                title=p.get("title", ""),
                zara_product_id=p.get("zara_product_id"),
                last_checked_at_fixed_store=None,
            )
            for p in self.products.values()
            if p.get("brand") == brand and p.get("in_stock_at_fixed_store")
        ]


class ScriptedStockClient:
    """Stands in for ZaraStockClient; answers from a per-product script.

    Script values are raw `shops` lists (as Zara sends them) or exceptions.
    """

    def __init__(self, script: dict | None = None, default=None):
        self.script = script or {}
        self.default = default if default is not None else []
        self.calls: list[dict] = []

    async def get_shops(self, product_ids, latitude, longitude, timeout=None) -> list[ShopStock]:
        self.calls.append(
            {"product_ids": product_ids, "latitude": latitude, "longitude": longitude, "timeout": timeout}
        )
        answer = self.script.get(str(product_ids), self.default)
        if isinstance(answer, Exception):
            raise answer
        return parse_shops({"shops": answer})


class FakeLockServer:
    """Token-owned locks with the redis-py Lock contract (acquire / reacquire / release)."""

    def __init__(self):
        self.owners: dict[str, str] = {}
        self.reacquired: list[str] = []
        self._tokens = 0

    def lock(self, key: str, ttl: int) -> "FakeLock":
        return FakeLock(self, key)

    def expire(self, key: str) -> None:
        self.owners.pop(key, None)

    def next_token(self) -> str:
        self._tokens += 1
        return f"token-{self._tokens}"


class FakeLock:
    def __init__(self, server: FakeLockServer, key: str):
        self.server = server
        self.key = key
        self.token: str | None = None

    async def acquire(self) -> bool:
        if self.key in self.server.owners:
            return False
        self.token = self.server.next_token()
        self.server.owners[self.key] = self.token
        return True

    async def reacquire(self) -> bool:
        if self.token is None:
            raise LockError("Cannot reacquire an unlocked lock")
        if self.server.owners.get(self.key) != self.token:
            raise LockNotOwnedError("Cannot reacquire a lock that's no longer owned")
        self.server.reacquired.append(self.token)
        return True

    async def release(self) -> None:
        if self.token is None:
            raise LockError("Cannot release an unlocked lock")
        if self.server.owners.get(self.key) != self.token:
            raise LockNotOwnedError("Cannot release a lock that's no longer owned")
        del self.server.owners[self.key]
        self.token = None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 24, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def availability_store(clock: FakeClock) -> InMemoryAvailabilityStore:
    return InMemoryAvailabilityStore(clock)


@pytest.fixture
def product_repo() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def stock_client() -> ScriptedStockClient:
    return ScriptedStockClient()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, sweep_delay_seconds=0.0)


@pytest.fixture
async def client(availability_store, product_repo, stock_client, settings):
    """HTTP client against the app with in-memory dependencies."""
    app.dependency_overrides[deps.get_availability_store] = lambda: availability_store
    app.dependency_overrides[deps.get_product_repository] = lambda: product_repo
    app.dependency_overrides[deps.get_stock_client] = lambda: stock_client
    app.dependency_overrides[deps.get_app_settings] = lambda: settings
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def lock_server(monkeypatch) -> FakeLockServer:
    """Route the sweep lock through an in-memory lock server."""
    server = FakeLockServer()
    monkeypatch.setattr(soho_sweep, "sweep_lock", server.lock)
    return server
