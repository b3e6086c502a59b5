from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Literal

from pydantic import Field
from sqlalchemy import or_

from app.labelops.api_utils import PageParams, generate_custom_id, id_number
from app.labelops.audit import record_event
from app.labelops.errors import NotFound, ValidationError
from app.labelops.modules.order_items.models import AMOUNT_INPUTS, OrderItem
from app.labelops.modules.orders.service import require_order
from app.labelops.modules.orders.totals import recalculate_quietly
from app.labelops.schemas import NonNegFloat, OptionalStr, Payload, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User

Movement = Literal["Y", "N"]


class ItemCreate(Payload):
    order_id: RequiredStr
    movement: Movement = "N"
    product_code: RequiredStr
    item_type: OptionalStr | None = None
    description: OptionalStr | None = None
    hs_code: OptionalStr | None = None
    unit: NonNegFloat = 0.0
    kg: NonNegFloat = 0.0
    declared_price_per_unit: NonNegFloat = 0.0
    declared_price_per_kg: NonNegFloat = 0.0
    actual_price_per_unit: NonNegFloat = 0.0
    actual_price_per_kg: NonNegFloat = 0.0
    declared_amount: NonNegFloat = Field(None)
    actual_amount: NonNegFloat = Field(None)


class ItemUpdate(Payload):
    order_item_id: RequiredStr
    order_id: RequiredStr = Field(None)
    movement: Movement = Field(None)
    product_code: RequiredStr = Field(None)
    item_type: OptionalStr | None = None
    description: OptionalStr | None = None
    hs_code: OptionalStr | None = None
    unit: NonNegFloat = Field(None)
    kg: NonNegFloat = Field(None)
    declared_price_per_unit: NonNegFloat = Field(None)
    declared_price_per_kg: NonNegFloat = Field(None)
    actual_price_per_unit: NonNegFloat = Field(None)
    actual_price_per_kg: NonNegFloat = Field(None)
    declared_amount: NonNegFloat = Field(None)
    actual_amount: NonNegFloat = Field(None)


class ItemDelete(Payload):
    order_item_id: RequiredStr


def line_amounts(values: dict) -> tuple[float, float]:
    """(declared, actual) = unit * price_per_unit + kg * price_per_kg."""
    unit = float(values.get("unit") or 0)
    kg = float(values.get("kg") or 0)
    declared = unit * float(values.get("declared_price_per_unit") or 0) + kg * float(
        values.get("declared_price_per_kg") or 0
    )
    actual = unit * float(values.get("actual_price_per_unit") or 0) + kg * float(
        values.get("actual_price_per_kg") or 0
    )
    return declared, actual


def get_item_or_404(s: "Session", order_item_id: str, message: str | None = None) -> OrderItem:
    item = s.get(OrderItem, order_item_id)
    if not item:
        raise NotFound(message or "order_item_id does not exist")
    return item


def create_item(s: "Session", payload: ItemCreate, user: "User") -> OrderItem:
    require_order(s, payload.order_id, "order_id does not exist")

    values = payload.model_dump()
    declared, actual = line_amounts(values)
    if values["declared_amount"] is None:
        values["declared_amount"] = declared
    if values["actual_amount"] is None:
        values["actual_amount"] = actual
    for key in ("item_type", "description", "hs_code"):
        values[key] = values[key] or None

    now = datetime.utcnow()
    item = OrderItem(
        order_item_id=generate_custom_id(s, OrderItem.order_item_id, "OIT"),
        created_at=now,
        updated_at=now,
        **values,
    )
    s.add(item)
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_item.create",
        entity_type="OrderItem",
        entity_id=item.order_item_id,
        metadata={"order_id": item.order_id, "product_code": item.product_code},
    )
    recalculate_quietly(s, item.order_id)
    return item


def update_item(s: "Session", payload: ItemUpdate, user: "User") -> OrderItem:
    item = get_item_or_404(s, payload.order_item_id)
    fields = payload.provided(exclude={"order_item_id"})
    if "order_id" in fields:
        require_order(s, fields["order_id"], "order_id does not exist")
    if not fields:
        raise ValidationError("No fields provided to update")

    if any(k in fields for k in AMOUNT_INPUTS):
        merged = {k: fields.get(k, getattr(item, k)) for k in AMOUNT_INPUTS}
        declared, actual = line_amounts(merged)
        fields.setdefault("declared_amount", declared)
        fields.setdefault("actual_amount", actual)

    previous_order_id = item.order_id
    changes = {}
    for attr, raw in fields.items():
        new = raw if raw != "" else None
        old = getattr(item, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(item, attr, new)
    item.updated_at = datetime.utcnow()
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_item.edit",
        entity_type="OrderItem",
        entity_id=item.order_item_id,
        metadata={"changes": changes},
    )
    recalculate_quietly(s, previous_order_id, item.order_id)
    return item


def delete_item(s: "Session", order_item_id: str, user: "User") -> None:
    item = get_item_or_404(s, order_item_id, f"order_item_id {order_item_id} not found")
    order_id = item.order_id
    s.delete(item)
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_item.delete",
        entity_type="OrderItem",
        entity_id=order_item_id,
        metadata={"order_id": order_id, "product_code": item.product_code},
    )
    recalculate_quietly(s, order_id)


def list_items(s: "Session", params: PageParams, order_id: str = "", search: str = "") -> tuple[list[OrderItem], int]:
    q = s.query(OrderItem)
    if order_id:
        q = q.filter(OrderItem.order_id == order_id)
    if search:
        like = f"%{search}%"
        q = q.filter(
            or_(
                OrderItem.product_code.ilike(like),
                OrderItem.description.ilike(like),
                OrderItem.item_type.ilike(like),
                OrderItem.hs_code.ilike(like),
            )
        )
    total = q.count()
    items = (
        q.order_by(id_number(OrderItem.order_item_id, "OIT").asc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return items, total
