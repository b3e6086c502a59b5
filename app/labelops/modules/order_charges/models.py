from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.labelops.models import Base


class OrderCharge(Base):
    """Extra cost on an order (freight, clearing, ...) added to the subtotal."""

    __tablename__ = "order_charges"
    __table_args__ = (Index("idx_order_charges_order", "order_id"),)

    order_charges_id: Mapped[str] = mapped_column(String(32), primary_key=True)  # OCH-<n>
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    charges: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "Order_Charges_ID": self.order_charges_id,
            "Order_ID": self.order_id,
            "Description": self.description,
            "Charges": self.charges,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
