"""Store availability model.

One row per product x store. Rows are upserted by the stock lookup refresh
cycle and never deleted: stale rows are superseded on the next refresh.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stock_api.stores.postgres import Base


class StoreAvailability(Base):
    """Cached availability of a product at one store."""

    __tablename__ = "store_availability"
    __table_args__ = (
        Index("ix_store_availability_product_expires", "product_id", "expires_at"),
    )

    # No FK to products: lookups may cache products the catalog does not hold yet
    product_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    store_id: Mapped[str] = mapped_column(Text, primary_key=True)

    # Upstream-derived text is unbounded
    store_name: Mapped[str] = mapped_column(Text)
    store_address: Mapped[str | None] = mapped_column(Text)
    in_stock: Mapped[bool] = mapped_column(default=False)
    distance: Mapped[float | None] = mapped_column()  # Upstream-reported, unit unspecified

    # Both assigned by the database at write time
    last_checked: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<StoreAvailability {self.product_id}/{self.store_id} in_stock={self.in_stock}>"
