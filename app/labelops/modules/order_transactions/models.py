from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.labelops.models import Base

# attribute name -> wire key. The misspelt keys are what existing clients send.
TRANSACTION_FIELDS = {
    "order_transaction_id": "Order_Transcation_ID",
    "order_id": "Order_ID",
    "transaction_date": "Transaction_Date",
    "type": "Type",
    "order_payment_type": "Order_Payment_Type",
    "payment_method": "Payment_Method",
    "actual_amount": "Actual_Amount",
    "declared_amount": "Decalred_Amount",
    "notes": "Notes",
    "created_at": "created_at",
    "updated_at": "updated_at",
}


class OrderTransaction(Base):
    __tablename__ = "order_transactions"
    __table_args__ = (Index("idx_order_transactions_order", "order_id"),)

    order_transaction_id: Mapped[str] = mapped_column(String(32), primary_key=True)  # OTR-<n>
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False)
    transaction_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    order_payment_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actual_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    declared_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {wire: getattr(self, attr) for attr, wire in TRANSACTION_FIELDS.items()}
