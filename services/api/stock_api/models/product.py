"""Product model.

Catalog records are created elsewhere (admin panel / seeding). This service
only reads them and writes the fixed-store stock flag.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from stock_api.stores.postgres import Base


class Product(Base):
    """Catalog product."""

    __tablename__ = "products"

    # Document ID (internal product identifier, partitions the availability cache)
    id: Mapped[str] = mapped_column(String(100), primary_key=True)

    brand: Mapped[str] = mapped_column(String(100), index=True)
    title: Mapped[str] = mapped_column(String(300))

    # Numeric Zara ID, stored as text (upstream namespace)
    zara_product_id: Mapped[str | None] = mapped_column(String(50))

    # Fixed-store flag, written only by the SoHo sweep
    in_stock_at_fixed_store: Mapped[bool] = mapped_column(default=False, index=True)
    last_checked_at_fixed_store: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product {self.id} ({self.brand})>"
