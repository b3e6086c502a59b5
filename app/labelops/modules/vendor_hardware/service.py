from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import Field
from sqlalchemy import or_

from app.labelops.api_utils import PageParams, generate_custom_id, id_number
from app.labelops.audit import record_event
from app.labelops.errors import Conflict, NotFound, ValidationError
from app.labelops.modules.collections.service import COLLECTIONS, name_exists
from app.labelops.modules.vendor_hardware.models import VendorHardware
from app.labelops.modules.vendors.models import Vendor
from app.labelops.schemas import Payload, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User


class HardwareCreate(Payload):
    vendor_id: RequiredStr = Field(alias="Vendor_ID")
    hardware_name: RequiredStr = Field(alias="Hardware_Name")
    hardware_description: RequiredStr = Field(alias="Hardware_Description")
    hardware_code_description: RequiredStr = Field(alias="Hardware_Code_Description")


class HardwareUpdate(Payload):
    hardware_code: RequiredStr = Field(alias="Hardware_Code")
    vendor_id: RequiredStr = Field(None, alias="Vendor_ID")
    hardware_name: RequiredStr = Field(None, alias="Hardware_Name")
    hardware_description: RequiredStr = Field(None, alias="Hardware_Description")
    hardware_code_description: RequiredStr = Field(None, alias="Hardware_Code_Description")


class HardwareDelete(Payload):
    hardware_code: RequiredStr = Field(alias="Hardware_Code")


def _check_unique(
    s: "Session",
    vendor_id: str,
    name: str,
    description: str,
    code_description: str,
    exclude_code: str | None = None,
) -> None:
    q = s.query(VendorHardware.hardware_code).filter(
        VendorHardware.vendor_id == vendor_id,
        VendorHardware.hardware_name == name,
        VendorHardware.hardware_description == description,
    )
    if exclude_code:
        q = q.filter(VendorHardware.hardware_code != exclude_code)
    if q.first() is not None:
        raise Conflict(
            "A hardware with the same Hardware_Name and Hardware_Description already exists for this vendor."
        )

    q = s.query(VendorHardware.hardware_code).filter(VendorHardware.hardware_code_description == code_description)
    if exclude_code:
        q = q.filter(VendorHardware.hardware_code != exclude_code)
    if q.first() is not None:
        raise Conflict("This Hardware_Code_Description already exists.")


def _check_references(s: "Session", vendor_id: str | None, name: str | None) -> None:
    if vendor_id is not None and s.get(Vendor, vendor_id) is None:
        raise NotFound("Vendor_ID does not exist")
    if name is not None and not name_exists(s, COLLECTIONS["hardware"], name):
        raise NotFound("Hardware_Name does not exist")


def get_hardware_or_404(s: "Session", hardware_code: str) -> VendorHardware:
    hw = s.get(VendorHardware, hardware_code)
    if not hw:
        raise NotFound("Hardware_Code does not exist")
    return hw


def create_hardware(s: "Session", payload: HardwareCreate, user: "User") -> VendorHardware:
    _check_references(s, payload.vendor_id, payload.hardware_name)
    _check_unique(
        s,
        payload.vendor_id,
        payload.hardware_name,
        payload.hardware_description,
        payload.hardware_code_description,
    )

    now = datetime.utcnow()
    hw = VendorHardware(
        hardware_code=generate_custom_id(s, VendorHardware.hardware_code, "HWC"),
        created_at=now,
        updated_at=now,
        **payload.model_dump(),
    )
    s.add(hw)
    s.flush()

    record_event(
        s,
        actor=user,
        action="vendor_hardware.create",
        entity_type="VendorHardware",
        entity_id=hw.hardware_code,
        metadata={"vendor_id": hw.vendor_id, "name": hw.hardware_name},
    )
    return hw


def update_hardware(s: "Session", payload: HardwareUpdate, user: "User") -> VendorHardware:
    hw = get_hardware_or_404(s, payload.hardware_code)
    fields = payload.provided(exclude={"hardware_code"})
    if not fields:
        raise ValidationError("No fields provided to update")

    _check_references(s, fields.get("vendor_id"), fields.get("hardware_name"))
    _check_unique(
        s,
        fields.get("vendor_id", hw.vendor_id),
        fields.get("hardware_name", hw.hardware_name),
        fields.get("hardware_description", hw.hardware_description),
        fields.get("hardware_code_description", hw.hardware_code_description),
        exclude_code=hw.hardware_code,
    )

    changes = {}
    for attr, new in fields.items():
        old = getattr(hw, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(hw, attr, new)
    hw.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="vendor_hardware.edit",
        entity_type="VendorHardware",
        entity_id=hw.hardware_code,
        metadata={"changes": changes},
    )
    return hw


def delete_hardware(s: "Session", hardware_code: str, user: "User") -> None:
    hw = get_hardware_or_404(s, hardware_code)
    s.delete(hw)
    record_event(
        s,
        actor=user,
        action="vendor_hardware.delete",
        entity_type="VendorHardware",
        entity_id=hardware_code,
        metadata={"vendor_id": hw.vendor_id, "name": hw.hardware_name},
    )


def list_hardware(
    s: "Session", params: PageParams, vendor_id: str = "", search: str = ""
) -> tuple[list[tuple[VendorHardware, str | None]], int]:
    q = s.query(VendorHardware, Vendor.vendor_name).outerjoin(Vendor, Vendor.vendor_id == VendorHardware.vendor_id)
    if vendor_id:
        q = q.filter(VendorHardware.vendor_id == vendor_id)
    if search:
        like = f"%{search}%"
        q = q.filter(
            or_(
                VendorHardware.hardware_name.ilike(like),
                VendorHardware.hardware_description.ilike(like),
                VendorHardware.hardware_code_description.ilike(like),
            )
        )
    total = q.count()
    rows = (
        q.order_by(id_number(VendorHardware.hardware_code, "HWC").asc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return [(hw, name) for hw, name in rows], total
