from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.labelops.models import Base

TYPE_PRODUCT = "product"
TYPE_HARDWARE = "hardware"


class InventoryRow(Base):
    """
    One delta in the inventory ledger. Stock on hand is the SUM of unit_quantity
    per barcode bucket, so removals are written as negative rows rather than
    by editing earlier ones. For products unit_quantity is an area in m².
    """

    __tablename__ = "order_inventory"
    __table_args__ = (
        Index("idx_order_inventory_order", "order_id"),
        Index("idx_order_inventory_barcode", "barcode_tag", "product_code"),
    )

    inventory_id: Mapped[str] = mapped_column(String(32), primary_key=True)  # INV-<n>
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.order_id", ondelete="RESTRICT"), nullable=False)
    order_transaction_type: Mapped[str] = mapped_column(String(64), nullable=False)
    order_payment_type: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)  # product | hardware
    product_code: Mapped[str] = mapped_column(String(32), nullable=False)
    unit_quantity: Mapped[float | None] = mapped_column(Float, nullable=True)
    kg_quantity: Mapped[float | None] = mapped_column(Float, nullable=True)
    barcode_tag: Mapped[str | None] = mapped_column(String(128), nullable=True)
    declared_price_per_unit: Mapped[float | None] = mapped_column(Float, nullable=True)
    declared_price_per_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_price_per_unit: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_price_per_kg: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "inventory_id": self.inventory_id,
            "order_id": self.order_id,
            "order_transaction_type": self.order_transaction_type,
            "order_payment_type": self.order_payment_type,
            "type": self.type,
            "product_code": self.product_code,
            "unit_quantity": self.unit_quantity,
            "kg_quantity": self.kg_quantity,
            "barcode_tag": self.barcode_tag,
            "declared_price_per_unit": self.declared_price_per_unit,
            "declared_price_per_kg": self.declared_price_per_kg,
            "actual_price_per_unit": self.actual_price_per_unit,
            "actual_price_per_kg": self.actual_price_per_kg,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def format_price(value: float | int) -> str:
    """Render a price the way the barcode labels print it: 12.0 -> "12", 12.5 -> "12.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def make_barcode_tag(product_code: str | None, actual_price_per_unit: float | None) -> str | None:
    if not product_code:
        return None
    if actual_price_per_unit is None:
        return product_code
    return f"{product_code} - {format_price(actual_price_per_unit)}"
