from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.labelops.models import Base

# Quantity/price pairs that produce an amount: amount = unit * per_unit + kg * per_kg
AMOUNT_INPUTS = (
    "unit",
    "kg",
    "declared_price_per_unit",
    "declared_price_per_kg",
    "actual_price_per_unit",
    "actual_price_per_kg",
)


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        Index("idx_order_items_order", "order_id"),
        Index("idx_order_items_movement", "order_id", "movement"),
    )

    order_item_id: Mapped[str] = mapped_column(String(32), primary_key=True)  # OIT-<n>
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False)
    movement: Mapped[str] = mapped_column(String(1), nullable=False, default="N")  # Y = received
    product_code: Mapped[str] = mapped_column(String(32), nullable=False)
    item_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    hs_code: Mapped[str | None] = mapped_column(String(64), nullable=True)

    unit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    kg: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    declared_price_per_unit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    declared_price_per_kg: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    actual_price_per_unit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    actual_price_per_kg: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    declared_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    actual_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "order_item_id": self.order_item_id,
            "order_id": self.order_id,
            "movement": self.movement,
            "product_code": self.product_code,
            "item_type": self.item_type,
            "description": self.description,
            "hs_code": self.hs_code,
            "unit": self.unit,
            "kg": self.kg,
            "declared_price_per_unit": self.declared_price_per_unit,
            "declared_price_per_kg": self.declared_price_per_kg,
            "actual_price_per_unit": self.actual_price_per_unit,
            "actual_price_per_kg": self.actual_price_per_kg,
            "declared_amount": self.declared_amount,
            "actual_amount": self.actual_amount,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
