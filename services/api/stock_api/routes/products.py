"""Product listing endpoints.

GET /v1/products/fixed-store - products of the sweep brand currently flagged
in stock at the fixed store (the mobile "SoHo" shelf).
"""

from fastapi import APIRouter, Depends

from stock_api.routes.deps import get_app_settings, get_product_repository
from stock_api.schemas import FixedStoreProductItem, FixedStoreProductsResponse
from stock_api.settings import Settings
from stock_api.stores.products import ProductRepository

router = APIRouter()


@router.get("/fixed-store", response_model=FixedStoreProductsResponse)
async def list_fixed_store_products(
    products: ProductRepository = Depends(get_product_repository),
    settings: Settings = Depends(get_app_settings),
) -> FixedStoreProductsResponse:
    """List products last seen in stock at the fixed store."""
    items = await products.list_in_stock_at_fixed_store(settings.sweep_brand)
    return FixedStoreProductsResponse(
        brand=settings.sweep_brand,
        store_id=settings.sweep_store_id,
        products=[
            FixedStoreProductItem(
                product_id=p.product_id,
                title=p.title,
                zara_product_id=p.zara_product_id,
                last_checked=p.last_checked_at_fixed_store,
            )
            for p in items
        ],
    )
