#!/usr/bin/env python3
"""SoHo sweep job for Railway Cron.

Behavior:
- Enumerate all products of SWEEP_BRAND (default "Zara")
- Ask Zara, one product at a time, for stock near the fixed store's coordinates
- Write `in_stock_at_fixed_store` for each product (chunked commits)
- Uses the same Redis lock as POST /v1/admin/sweeps/soho, so a cron run and a
  manual trigger never overlap

Run (local / Railway):
  cd services/api
  python -m scripts.sweep_soho

Optional env vars:
  SWEEP_BRAND="Zara"
  SWEEP_STORE_ID="11719"
  SWEEP_DELAY_SECONDS=0.2
  SWEEP_BATCH_SIZE=400
"""

import asyncio
import os
import sys


# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stock_api.routes.admin import sweep_summary_payload  # noqa: E402
from stock_api.services.errors import SweepInProgress  # noqa: E402
from stock_api.services.soho_sweep import run_guarded_soho_sweep  # noqa: E402
from stock_api.services.zara_client import close_stock_client, get_stock_client  # noqa: E402
from stock_api.stores.postgres import close_db, init_db, ping_db  # noqa: E402
from stock_api.stores.products import PostgresProductRepository  # noqa: E402
from stock_api.stores.redis import close_redis, init_redis  # noqa: E402


async def main() -> int:
    # Initialize shared connections (same as API lifespan, but for a one-off cron run)
    await init_db()
    await ping_db()
    try:
        await init_redis()
    except Exception as e:
        # Cron can still run without Redis (but overlapping sweeps are not prevented).
        print({"warning": "redis unavailable, sweep runs unguarded", "error": repr(e)})

    try:
        summary = await run_guarded_soho_sweep(
            products=PostgresProductRepository(),
            client=get_stock_client(),
        )
    except SweepInProgress as e:
        print({"ok": False, "error": e.code, "message": e.message})
        return 1
    finally:
        await close_stock_client()
        await close_redis()
        await close_db()

    # Final output for Railway logs (single JSON-ish blob)
    print({"ok": summary.success, **sweep_summary_payload(summary)})
    return 0 if summary.success else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
