from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field, field_validator
from sqlalchemy import func

from app.labelops.api_utils import PageParams, generate_custom_id
from app.labelops.audit import record_event
from app.labelops.errors import NotFound, ValidationError
from app.labelops.modules.inventory.models import TYPE_HARDWARE, TYPE_PRODUCT, InventoryRow, make_barcode_tag
from app.labelops.modules.order_items.models import OrderItem
from app.labelops.modules.orders.service import require_order
from app.labelops.modules.vendor_hardware.models import VendorHardware
from app.labelops.modules.vendor_products.models import VendorProduct
from app.labelops.schemas import NonNegFloat, OptionalStr, Payload, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User

DEFAULT_TRANSACTION_TYPE = "Purchase"
DEFAULT_PAYMENT_TYPE = "Credit"

GroupBy = Literal[
    "barcode_tag",
    "product_code",
    "order_id",
    "type",
    "order_transaction_type",
    "order_payment_type",
]


# ---------- Payloads ----------
class InventoryCreate(Payload):
    order_id: RequiredStr
    order_transaction_type: RequiredStr
    order_payment_type: RequiredStr
    type: RequiredStr
    product_code: RequiredStr
    unit_quantity: NonNegFloat | None = None
    kg_quantity: NonNegFloat | None = None
    declared_price_per_unit: NonNegFloat | None = None
    declared_price_per_kg: NonNegFloat | None = None
    actual_price_per_unit: NonNegFloat | None = None
    actual_price_per_kg: NonNegFloat | None = None


class InventoryUpdate(Payload):
    inventory_id: RequiredStr
    order_id: RequiredStr = Field(None)
    order_transaction_type: RequiredStr = Field(None)
    order_payment_type: RequiredStr = Field(None)
    type: RequiredStr = Field(None)
    product_code: RequiredStr = Field(None)
    unit_quantity: NonNegFloat = Field(None)
    kg_quantity: NonNegFloat = Field(None)
    declared_price_per_unit: NonNegFloat = Field(None)
    declared_price_per_kg: NonNegFloat = Field(None)
    actual_price_per_unit: NonNegFloat = Field(None)
    actual_price_per_kg: NonNegFloat = Field(None)


class InventoryDelete(Payload):
    inventory_id: RequiredStr


class SyncRequest(Payload):
    order_id: RequiredStr


class InventoryListQuery(Payload):
    order_id: OptionalStr | None = None
    mode: Literal["available"] | None = None
    type: Literal["product", "hardware"] | None = None
    group_by: GroupBy | None = None
    search: OptionalStr | None = None

    @field_validator("mode", "type", "group_by", mode="before")
    @classmethod
    def _blank_is_omitted(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ---------- Rows ----------
def add_row(s: "Session", **values: Any) -> InventoryRow:
    """Insert a ledger row with the next INV id. Flushes so the following id sees it."""
    now = datetime.utcnow()
    row = InventoryRow(
        inventory_id=generate_custom_id(s, InventoryRow.inventory_id, "INV"),
        created_at=now,
        updated_at=now,
        **values,
    )
    s.add(row)
    s.flush()
    return row


def get_row_or_404(s: "Session", inventory_id: str, message: str | None = None) -> InventoryRow:
    row = s.get(InventoryRow, inventory_id)
    if not row:
        raise NotFound(message or "inventory_id does not exist")
    return row


def create_inventory(s: "Session", payload: InventoryCreate, user: "User") -> InventoryRow:
    require_order(s, payload.order_id, "order_id does not exist")
    values = payload.model_dump()
    row = add_row(s, barcode_tag=make_barcode_tag(payload.product_code, payload.actual_price_per_unit), **values)

    record_event(
        s,
        actor=user,
        action="inventory.create",
        entity_type="InventoryRow",
        entity_id=row.inventory_id,
        metadata={"order_id": row.order_id, "barcode_tag": row.barcode_tag},
    )
    return row


def update_inventory(s: "Session", payload: InventoryUpdate, user: "User") -> InventoryRow:
    row = get_row_or_404(s, payload.inventory_id)
    fields = payload.provided(exclude={"inventory_id"})
    if "order_id" in fields:
        require_order(s, fields["order_id"], "order_id does not exist")
    if not fields:
        raise ValidationError("No fields provided to update")

    if "product_code" in fields or "actual_price_per_unit" in fields:
        fields["barcode_tag"] = make_barcode_tag(
            fields.get("product_code", row.product_code),
            fields.get("actual_price_per_unit", row.actual_price_per_unit),
        )

    changes = {}
    for attr, new in fields.items():
        old = getattr(row, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(row, attr, new)
    row.updated_at = datetime.utcnow()
    s.flush()

    record_event(
        s,
        actor=user,
        action="inventory.edit",
        entity_type="InventoryRow",
        entity_id=row.inventory_id,
        metadata={"changes": changes},
    )
    return row


def delete_inventory(s: "Session", inventory_id: str, user: "User") -> None:
    row = get_row_or_404(s, inventory_id, f"inventory_id {inventory_id} not found")
    s.delete(row)
    s.flush()
    record_event(
        s,
        actor=user,
        action="inventory.delete",
        entity_type="InventoryRow",
        entity_id=inventory_id,
        metadata={"order_id": row.order_id, "barcode_tag": row.barcode_tag},
    )


# ---------- Listing ----------
def _norm_upper(col):
    return func.upper(func.trim(col))


def _norm_lower(col):
    return func.lower(func.trim(col))


def _row_dict(row) -> dict[str, Any]:
    return dict(row._mapping)


def _grouped_by_field(
    s: "Session", query: InventoryListQuery, params: PageParams, conds: list
) -> tuple[list[dict[str, Any]], int]:
    col = getattr(InventoryRow, query.group_by)
    if query.group_by == "barcode_tag":
        conds = [*conds, InventoryRow.barcode_tag.isnot(None)]
    q = (
        s.query(
            col.label(query.group_by),
            func.sum(InventoryRow.unit_quantity).label("total_unit_quantity"),
            func.sum(InventoryRow.kg_quantity).label("total_kg_quantity"),
            func.count().label("item_count"),
        )
        .filter(*conds)
        .group_by(col)
    )
    if query.mode == "available":
        q = q.having(func.sum(InventoryRow.unit_quantity) > 0)
    total = s.query(func.count()).select_from(q.subquery()).scalar() or 0
    rows = q.order_by(col.asc()).offset(params.offset).limit(params.limit).all()
    return [_row_dict(r) for r in rows], int(total)


def _grouped_by_barcode(
    s: "Session", query: InventoryListQuery, params: PageParams, conds: list
) -> tuple[list[dict[str, Any]], int]:
    """Stock buckets keyed by the normalised barcode tag, with the catalog description."""
    tag = _norm_upper(InventoryRow.barcode_tag)
    code = _norm_upper(InventoryRow.product_code)
    product_on = code == _norm_upper(VendorProduct.product_code)
    hardware_on = code == _norm_upper(VendorHardware.hardware_code)
    conds = [*conds, InventoryRow.barcode_tag.isnot(None)]
    like = f"%{query.search}%" if query.search else None

    if query.type == TYPE_PRODUCT:
        description = func.max(VendorProduct.product_description)
        if like:
            conds.append(VendorProduct.product_description.ilike(like))
    elif query.type == TYPE_HARDWARE:
        description = func.max(VendorHardware.hardware_code_description)
        if like:
            conds.append(VendorHardware.hardware_code_description.ilike(like))
    else:
        description = func.max(func.coalesce(VendorProduct.product_description, VendorHardware.hardware_code_description))
        if like:
            conds.append(
                VendorProduct.product_description.ilike(like) | VendorHardware.hardware_code_description.ilike(like)
            )

    q = s.query(
        tag.label("barcode_tag"),
        func.max(code).label("product_code"),
        func.max(_norm_lower(InventoryRow.type)).label("type"),
        func.sum(InventoryRow.unit_quantity).label("total_unit_quantity"),
        func.max(InventoryRow.actual_price_per_unit).label("actual_price_per_unit"),
        func.count().label("item_count"),
        description.label("description"),
    ).select_from(InventoryRow)

    if query.type == TYPE_PRODUCT:
        q = q.join(VendorProduct, product_on)
    elif query.type == TYPE_HARDWARE:
        q = q.join(VendorHardware, hardware_on)
    else:
        q = q.outerjoin(VendorProduct, product_on).outerjoin(VendorHardware, hardware_on)

    q = q.filter(*conds).group_by(tag)
    if query.mode == "available":
        q = q.having(func.sum(InventoryRow.unit_quantity) > 0)
    total = s.query(func.count()).select_from(q.subquery()).scalar() or 0
    rows = q.order_by(tag.asc()).offset(params.offset).limit(params.limit).all()
    return [_row_dict(r) for r in rows], int(total)


def list_inventory(s: "Session", query: InventoryListQuery, params: PageParams) -> tuple[list[dict[str, Any]], int]:
    conds: list = []
    if query.order_id:
        conds.append(InventoryRow.order_id == query.order_id)
    if query.type:
        conds.append(_norm_lower(InventoryRow.type) == query.type)
    if query.group_by:
        return _grouped_by_field(s, query, params, conds)
    return _grouped_by_barcode(s, query, params, conds)


# ---------- Sync ----------
def sync_order_to_inventory(s: "Session", order_id: str, user: "User") -> dict[str, Any]:
    """Upsert one ledger row per received item of the order, keyed by order + barcode tag."""
    require_order(s, order_id, "order_id does not exist")
    items = (
        s.query(OrderItem)
        .filter(OrderItem.order_id == order_id, OrderItem.movement == "Y")
        .order_by(OrderItem.created_at.asc())
        .all()
    )
    if not items:
        return {"message": "No received items found to sync", "synced_count": 0, "created_count": 0, "updated_count": 0}

    created = updated = 0
    for item in items:
        tag = make_barcode_tag(item.product_code, item.actual_price_per_unit)
        quantities = {
            "unit_quantity": item.unit,
            "kg_quantity": item.kg,
            "declared_price_per_unit": item.declared_price_per_unit,
            "declared_price_per_kg": item.declared_price_per_kg,
            "actual_price_per_unit": item.actual_price_per_unit,
            "actual_price_per_kg": item.actual_price_per_kg,
        }
        existing = (
            s.query(InventoryRow)
            .filter(InventoryRow.order_id == order_id, InventoryRow.barcode_tag == tag)
            .first()
        )
        if existing is not None:
            for attr, value in quantities.items():
                setattr(existing, attr, value)
            existing.updated_at = datetime.utcnow()
            s.flush()
            updated += 1
        else:
            add_row(
                s,
                order_id=order_id,
                order_transaction_type=DEFAULT_TRANSACTION_TYPE,
                order_payment_type=DEFAULT_PAYMENT_TYPE,
                type=(item.item_type or "").strip().lower() or TYPE_PRODUCT,
                product_code=item.product_code,
                barcode_tag=tag,
                **quantities,
            )
            created += 1

    record_event(
        s,
        actor=user,
        action="inventory.sync",
        entity_type="Order",
        entity_id=order_id,
        metadata={"created": created, "updated": updated},
    )
    return {
        "message": "Inventory sync completed successfully",
        "synced_count": created + updated,
        "created_count": created,
        "updated_count": updated,
    }
