"""Dependency providers for routers.

Routers never reach for module globals directly; tests swap these through
`app.dependency_overrides`.
"""

from datetime import timedelta

from stock_api.services.zara_client import ZaraStockClient, get_stock_client as _get_stock_client
from stock_api.settings import Settings, get_settings
from stock_api.stores.availability import AvailabilityStore, PostgresAvailabilityStore
from stock_api.stores.products import PostgresProductRepository, ProductRepository


def get_app_settings() -> Settings:
    return get_settings()


def get_availability_store() -> AvailabilityStore:
    ttl = timedelta(minutes=get_settings().availability_ttl_minutes)
    return PostgresAvailabilityStore(ttl=ttl)


def get_product_repository() -> ProductRepository:
    return PostgresProductRepository()


def get_stock_client() -> ZaraStockClient:
    return _get_stock_client()
