from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.labelops.models import Base

if TYPE_CHECKING:
    from app.labelops.modules.vendors.models import Vendor


class VendorHardware(Base):
    __tablename__ = "vendor_hardware_codes"
    __table_args__ = (
        Index("idx_vendor_hardware_vendor", "vendor_id"),
        Index("idx_vendor_hardware_name", "hardware_name"),
    )

    hardware_code: Mapped[str] = mapped_column(String(32), primary_key=True)  # HWC-<n>
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendors.vendor_id", ondelete="RESTRICT"), nullable=False)
    hardware_name: Mapped[str] = mapped_column(String(128), nullable=False)
    hardware_description: Mapped[str] = mapped_column(Text, nullable=False)
    hardware_code_description: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    vendor: Mapped["Vendor"] = relationship("Vendor", back_populates="hardware")

    def to_dict(self) -> dict:
        return {
            "Hardware_Code": self.hardware_code,
            "Vendor_ID": self.vendor_id,
            "Hardware_Name": self.hardware_name,
            "Hardware_Description": self.hardware_description,
            "Hardware_Code_Description": self.hardware_code_description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
