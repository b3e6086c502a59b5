from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import Field

from app.labelops.api_utils import PageParams, generate_custom_id, id_number
from app.labelops.audit import record_event
from app.labelops.errors import NotFound
from app.labelops.modules.order_charges.models import OrderCharge
from app.labelops.modules.orders.service import require_order
from app.labelops.modules.orders.totals import recalculate_quietly
from app.labelops.schemas import NonNegFloat, Payload, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User


class ChargeCreate(Payload):
    order_id: RequiredStr = Field(alias="Order_ID")
    description: RequiredStr = Field(alias="Description")
    charges: NonNegFloat = Field(alias="Charges")


class ChargeUpdate(ChargeCreate):
    order_charges_id: RequiredStr = Field(alias="Order_Charges_ID")


class ChargeDelete(Payload):
    order_charges_id: RequiredStr = Field(alias="Order_Charges_ID")


def create_charge(s: "Session", payload: ChargeCreate, user: "User") -> OrderCharge:
    require_order(s, payload.order_id, "Order_ID does not exist")

    now = datetime.utcnow()
    charge = OrderCharge(
        order_charges_id=generate_custom_id(s, OrderCharge.order_charges_id, "OCH"),
        created_at=now,
        updated_at=now,
        **payload.model_dump(),
    )
    s.add(charge)
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_charge.create",
        entity_type="OrderCharge",
        entity_id=charge.order_charges_id,
        metadata={"order_id": charge.order_id, "charges": charge.charges},
    )
    recalculate_quietly(s, charge.order_id)
    return charge


def update_charge(s: "Session", payload: ChargeUpdate, user: "User") -> OrderCharge:
    charge = s.get(OrderCharge, payload.order_charges_id)
    if not charge:
        raise NotFound(f"Order_Charges_ID {payload.order_charges_id} not found")
    require_order(s, payload.order_id, "Order_ID does not exist")

    previous_order_id = charge.order_id
    changes = {}
    for attr, new in payload.model_dump(exclude={"order_charges_id"}).items():
        old = getattr(charge, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(charge, attr, new)
    charge.updated_at = datetime.utcnow()
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_charge.edit",
        entity_type="OrderCharge",
        entity_id=charge.order_charges_id,
        metadata={"changes": changes},
    )
    recalculate_quietly(s, previous_order_id, charge.order_id)
    return charge


def delete_charge(s: "Session", order_charges_id: str, user: "User") -> None:
    charge = s.get(OrderCharge, order_charges_id)
    if not charge:
        raise NotFound("Order_Charges_ID does not exist")
    order_id = charge.order_id
    s.delete(charge)
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_charge.delete",
        entity_type="OrderCharge",
        entity_id=order_charges_id,
        metadata={"order_id": order_id},
    )
    recalculate_quietly(s, order_id)


def list_charges(s: "Session", params: PageParams, order_id: str = "") -> tuple[list[OrderCharge], int]:
    q = s.query(OrderCharge)
    if order_id:
        q = q.filter(OrderCharge.order_id == order_id)
    total = q.count()
    charges = (
        q.order_by(id_number(OrderCharge.order_charges_id, "OCH").desc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return charges, total
