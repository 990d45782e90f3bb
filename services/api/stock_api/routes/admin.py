"""Admin endpoints.

These endpoints are intended for manual triggers and cron callers.
In production, consider adding authentication (API key or admin token).
"""

import logging

from fastapi import APIRouter, Depends

from stock_api.routes.deps import get_app_settings, get_product_repository, get_stock_client
from stock_api.services.soho_sweep import SweepSummary, run_guarded_soho_sweep
from stock_api.services.zara_client import ZaraStockClient
from stock_api.settings import Settings
from stock_api.stores.products import ProductRepository

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def sweep_summary_payload(summary: SweepSummary) -> dict:
    """Render a sweep summary as the public response body."""
    if summary.products_found == 0:
        return {"message": f"No {summary.brand} products found."}

    details: list[dict] = []
    for outcome in summary.details:
        if outcome.error is not None:
            details.append({"productId": outcome.product_id, "error": outcome.error})
        else:
            details.append(
                {
                    "productId": outcome.product_id,
                    "zaraProductId": outcome.zara_product_id,
                    "isAvailable": outcome.is_available,
                }
            )
    return {
        "success": summary.success,
        "updatedCount": summary.updated_count,
        "failedBatches": summary.failed_batches,
        "details": details,
        "skipped": summary.skipped,
    }


@router.api_route("/sweeps/soho", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def trigger_soho_sweep(
    products: ProductRepository = Depends(get_product_repository),
    client: ZaraStockClient = Depends(get_stock_client),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Refresh the fixed-store flag for every product of the sweep brand.

    Any method is accepted and no body is required. Returns 409 when another
    sweep for the same store is still running.
    """
    summary = await run_guarded_soho_sweep(products=products, client=client, settings=settings)
    return sweep_summary_payload(summary)
