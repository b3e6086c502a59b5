from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import Field
from sqlalchemy import func, or_

from app.labelops.audit import record_event
from app.labelops.errors import Conflict
from app.labelops.modules.collections.models import Adhesive, HardwareName, Material
from app.labelops.schemas import Payload, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User


class MaterialCreate(Payload):
    name: RequiredStr = Field(alias="Material_Name")
    mask_id: RequiredStr = Field(alias="Material_Mask_ID")


class AdhesiveCreate(Payload):
    name: RequiredStr = Field(alias="Adhesive_Name")
    mask_id: RequiredStr = Field(alias="Adhesive_Mask_ID")


class HardwareNameCreate(Payload):
    name: RequiredStr = Field(alias="Hardware_Name")
    mask_id: RequiredStr = Field(alias="Hardware_Mask_ID")


@dataclass(frozen=True)
class CollectionKind:
    model: Any
    name_attr: str
    mask_attr: str
    payload: type[Payload]
    label: str


COLLECTIONS: dict[str, CollectionKind] = {
    "material": CollectionKind(Material, "material_name", "material_mask_id", MaterialCreate, "Material"),
    "adhesive": CollectionKind(Adhesive, "adhesive_name", "adhesive_mask_id", AdhesiveCreate, "Adhesive"),
    "hardware": CollectionKind(HardwareName, "hardware_name", "hardware_mask_id", HardwareNameCreate, "Hardware"),
}


def list_entries(s: "Session", kind: CollectionKind) -> list:
    return s.query(kind.model).order_by(getattr(kind.model, kind.mask_attr).asc()).all()


def create_entry(s: "Session", kind: CollectionKind, payload: Payload, user: "User"):
    name = payload.name  # type: ignore[attr-defined]
    mask = payload.mask_id  # type: ignore[attr-defined]
    name_col = getattr(kind.model, kind.name_attr)
    mask_col = getattr(kind.model, kind.mask_attr)
    clash = (
        s.query(kind.model)
        .filter(or_(func.lower(name_col) == name.lower(), func.lower(mask_col) == mask.lower()))
        .first()
    )
    if clash is not None:
        raise Conflict(f"{kind.label}_Name or {kind.label}_Mask_ID already exists")

    entry = kind.model(**{kind.name_attr: name, kind.mask_attr: mask})
    s.add(entry)
    s.flush()

    record_event(
        s,
        actor=user,
        action=f"collection.{kind.label.lower()}.create",
        entity_type=kind.model.__name__,
        entity_id=str(entry.id),
        metadata={"name": name, "mask": mask},
    )
    return entry


def name_exists(s: "Session", kind: CollectionKind, name: str) -> bool:
    col = getattr(kind.model, kind.name_attr)
    return s.query(kind.model.id).filter(col == name).first() is not None
