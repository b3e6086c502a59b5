from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import Field
from sqlalchemy import func, or_

from app.labelops.api_utils import PageParams, generate_custom_id
from app.labelops.audit import record_event
from app.labelops.errors import Conflict, NotFound, ValidationError
from app.labelops.modules.vendors.models import Vendor
from app.labelops.schemas import EmailOrBlank, OptionalStr, Payload, RequiredStr, UrlOrBlank

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User


class _VendorOptionalFields(Payload):
    ntn_number: OptionalStr | None = Field(None, alias="NTN_Number")
    strn_number: OptionalStr | None = Field(None, alias="STRN_Number")
    address_1: OptionalStr | None = Field(None, alias="Address_1")
    address_2: OptionalStr | None = Field(None, alias="Address_2")
    contact_number: OptionalStr | None = Field(None, alias="Contact_Number")
    contact_person: OptionalStr | None = Field(None, alias="Contact_Person")
    email_id: EmailOrBlank | None = Field(None, alias="Email_ID")
    website: UrlOrBlank | None = Field(None, alias="Website")
    account_number: OptionalStr | None = Field(None, alias="Account_Number")
    iban_number: OptionalStr | None = Field(None, alias="IBAN_Number")
    swift_code: OptionalStr | None = Field(None, alias="Swift_Code")
    bank_name: OptionalStr | None = Field(None, alias="Bank_Name")
    branch_code: OptionalStr | None = Field(None, alias="Branch_Code")


class VendorCreate(_VendorOptionalFields):
    vendor_name: RequiredStr = Field(alias="Vendor_Name")
    vendor_mask_id: RequiredStr = Field(alias="Vendor_Mask_ID")


class VendorUpdate(_VendorOptionalFields):
    vendor_id: RequiredStr = Field(alias="Vendor_ID")
    vendor_name: RequiredStr = Field(None, alias="Vendor_Name")
    vendor_mask_id: RequiredStr = Field(None, alias="Vendor_Mask_ID")


class VendorDelete(Payload):
    vendor_id: RequiredStr = Field(alias="Vendor_ID")


def _ensure_unique_name_and_mask(s: "Session", name: str | None, mask: str | None, exclude_id: str | None = None) -> None:
    conds = []
    if name:
        conds.append(func.lower(Vendor.vendor_name) == name.lower())
    if mask:
        conds.append(func.lower(Vendor.vendor_mask_id) == mask.lower())
    if not conds:
        return
    q = s.query(Vendor.vendor_id).filter(or_(*conds))
    if exclude_id:
        q = q.filter(Vendor.vendor_id != exclude_id)
    if q.first() is not None:
        raise Conflict("Vendor_Name or Vendor_Mask_ID already exists")


def get_vendor_or_404(s: "Session", vendor_id: str, message: str | None = None) -> Vendor:
    vendor = s.get(Vendor, vendor_id)
    if not vendor:
        raise NotFound(message or f"Vendor with ID '{vendor_id}' not found")
    return vendor


def create_vendor(s: "Session", payload: VendorCreate, user: "User") -> Vendor:
    _ensure_unique_name_and_mask(s, payload.vendor_name, payload.vendor_mask_id)

    now = datetime.utcnow()
    values = {k: (v or None) for k, v in payload.model_dump().items()}
    vendor = Vendor(
        vendor_id=generate_custom_id(s, Vendor.vendor_id, "VDR"),
        created_at=now,
        updated_at=now,
        **values,
    )
    s.add(vendor)
    s.flush()

    record_event(
        s,
        actor=user,
        action="vendor.create",
        entity_type="Vendor",
        entity_id=vendor.vendor_id,
        metadata={"name": vendor.vendor_name, "mask": vendor.vendor_mask_id},
    )
    return vendor


def update_vendor(s: "Session", payload: VendorUpdate, user: "User") -> Vendor:
    fields = payload.provided(exclude={"vendor_id"})
    if not fields:
        raise ValidationError("No fields provided to update")

    vendor = get_vendor_or_404(s, payload.vendor_id)
    _ensure_unique_name_and_mask(s, fields.get("vendor_name"), fields.get("vendor_mask_id"), exclude_id=vendor.vendor_id)

    changes = {}
    for attr, raw in fields.items():
        new = raw or None
        old = getattr(vendor, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(vendor, attr, new)
    vendor.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="vendor.edit",
        entity_type="Vendor",
        entity_id=vendor.vendor_id,
        metadata={"changes": changes},
    )
    return vendor


def delete_vendor(s: "Session", vendor_id: str, user: "User") -> None:
    vendor = get_vendor_or_404(s, vendor_id, "Vendor not found")

    dependencies = []
    if vendor.hardware:
        dependencies.append("hardware codes")
    if vendor.products:
        dependencies.append("product codes")
    if dependencies:
        raise Conflict(
            f"Cannot delete vendor. It has associated {' and '.join(dependencies)}. "
            "Please remove all associated records before deleting this vendor."
        )

    s.delete(vendor)
    record_event(
        s,
        actor=user,
        action="vendor.delete",
        entity_type="Vendor",
        entity_id=vendor_id,
        metadata={"name": vendor.vendor_name},
    )


def list_vendors(s: "Session", params: PageParams, search: str = "") -> tuple[list[Vendor], int]:
    q = s.query(Vendor)
    if search:
        like = f"%{search}%"
        q = q.filter(
            (Vendor.vendor_name.ilike(like))
            | (Vendor.vendor_mask_id.ilike(like))
            | (Vendor.ntn_number.ilike(like))
            | (Vendor.strn_number.ilike(like))
        )
    total = q.count()
    vendors = q.order_by(Vendor.vendor_name.asc()).offset(params.offset).limit(params.limit).all()
    return vendors, total
