"""API routes."""

from fastapi import APIRouter

from stock_api.routes import admin, products, stock

api_router = APIRouter()

# On-demand stock lookups (mobile client)
api_router.include_router(stock.router, prefix="/v1/stock", tags=["stock"])

# Product listings
api_router.include_router(products.router, prefix="/v1/products", tags=["products"])

# Admin endpoints (sweeps)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
