"""SQLAlchemy ORM models.

Models represent database tables:
- products: Catalog records (pre-existing), plus the fixed-store stock flag
- store_availability: Per product x store availability cache with expiry
"""

from stock_api.models.product import Product
from stock_api.models.store_availability import StoreAvailability

__all__ = ["Product", "StoreAvailability"]
