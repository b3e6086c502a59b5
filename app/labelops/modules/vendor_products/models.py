from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.labelops.models import Base

if TYPE_CHECKING:
    from app.labelops.modules.vendors.models import Vendor


class VendorProduct(Base):
    """Label stock sold by a vendor; Width is the roll width in millimetres."""

    __tablename__ = "vendor_product_codes"
    __table_args__ = (
        UniqueConstraint("vendor_id", "product_description", name="uq_vendor_product_description"),
        Index("idx_vendor_products_vendor", "vendor_id"),
        Index("idx_vendor_products_split_match", "vendor_id", "adhesive_type", "paper_gsm", "material"),
    )

    product_code: Mapped[str] = mapped_column(String(32), primary_key=True)  # VPC-<n>
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendors.vendor_id", ondelete="RESTRICT"), nullable=False)
    material: Mapped[str] = mapped_column(String(128), nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    adhesive_type: Mapped[str] = mapped_column(String(128), nullable=False)
    paper_gsm: Mapped[int] = mapped_column(Integer, nullable=False)
    product_description: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    vendor: Mapped["Vendor"] = relationship("Vendor", back_populates="products")

    def to_dict(self) -> dict:
        return {
            "Product_Code": self.product_code,
            "Vendor_ID": self.vendor_id,
            "Material": self.material,
            "Width": self.width,
            "Adhesive_Type": self.adhesive_type,
            "Paper_GSM": self.paper_gsm,
            "Product_Description": self.product_description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
