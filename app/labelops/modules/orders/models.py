from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.labelops.models import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_type_created", "type", "created_at"),
        Index("idx_orders_entity", "entity_id"),
        Index("idx_orders_status", "status"),
    )

    order_id: Mapped[str] = mapped_column(String(32), primary_key=True)  # ORD-<n>
    user: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Derived by recalculate_order_total_due; clients may seed it on create.
    status: Mapped[str] = mapped_column(String(64), nullable=False)
    total_due: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    entity_id: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "user": self.user,
            "type": self.type,
            "company": self.company,
            "status": self.status,
            "total_due": self.total_due,
            "entity_id": self.entity_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class OrderConfig(Base):
    __tablename__ = "order_config"

    order_config_id: Mapped[str] = mapped_column(String(32), primary_key=True)  # OCG-<n>
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, unique=True)
    tax_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    committed_date: Mapped[str | None] = mapped_column(String(32), nullable=True)  # YYYY-MM-DD
    entity_order: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gate_pass: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "order_config_id": self.order_config_id,
            "order_id": self.order_id,
            "tax_percentage": self.tax_percentage,
            "committed_date": self.committed_date,
            "entity_order": self.entity_order,
            "gate_pass": self.gate_pass,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class OrderNote(Base):
    __tablename__ = "order_notes"

    order_note_id: Mapped[str] = mapped_column(String(32), primary_key=True)  # ONT-<n>
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, unique=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "order_note_id": self.order_note_id,
            "order_id": self.order_id,
            "note": self.note,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
