from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.labelops.models import Base

if TYPE_CHECKING:
    from app.labelops.modules.vendor_hardware.models import VendorHardware
    from app.labelops.modules.vendor_products.models import VendorProduct


# attribute name -> wire key
VENDOR_FIELDS = {
    "vendor_id": "Vendor_ID",
    "vendor_name": "Vendor_Name",
    "vendor_mask_id": "Vendor_Mask_ID",
    "ntn_number": "NTN_Number",
    "strn_number": "STRN_Number",
    "address_1": "Address_1",
    "address_2": "Address_2",
    "contact_number": "Contact_Number",
    "contact_person": "Contact_Person",
    "email_id": "Email_ID",
    "website": "Website",
    "account_number": "Account_Number",
    "iban_number": "IBAN_Number",
    "swift_code": "Swift_Code",
    "bank_name": "Bank_Name",
    "branch_code": "Branch_Code",
    "created_at": "created_at",
    "updated_at": "updated_at",
}


class Vendor(Base):
    __tablename__ = "vendors"
    __table_args__ = (
        Index("idx_vendors_name", "vendor_name"),
        Index("idx_vendors_mask_id", "vendor_mask_id"),
    )

    vendor_id: Mapped[str] = mapped_column(String(32), primary_key=True)  # VDR-<n>

    # Required
    vendor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    vendor_mask_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Tax registration
    ntn_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    strn_number: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Contact
    address_1: Mapped[str | None] = mapped_column(Text, nullable=True)
    address_2: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email_id: Mapped[str | None] = mapped_column(String(320), nullable=True)
    website: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # Banking
    account_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    iban_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    swift_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    branch_code: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    products: Mapped[list["VendorProduct"]] = relationship("VendorProduct", back_populates="vendor", lazy="selectin")
    hardware: Mapped[list["VendorHardware"]] = relationship("VendorHardware", back_populates="vendor", lazy="selectin")

    def to_dict(self) -> dict:
        return {wire: getattr(self, attr) for attr, wire in VENDOR_FIELDS.items()}
