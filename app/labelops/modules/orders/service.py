from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from pydantic import Field
from sqlalchemy import Date, func

from app.labelops.api_utils import PageParams, generate_custom_id
from app.labelops.audit import record_event
from app.labelops.errors import NotFound, ValidationError
from app.labelops.modules.orders.models import Order, OrderConfig, OrderNote
from app.labelops.modules.orders.totals import recalculate_quietly
from app.labelops.schemas import IsoDate, IsoDateOrBlank, NonNegFloat, NonNegInt, OptionalStr, Payload, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User


# ---------- Payloads ----------
class OrderCreate(Payload):
    user: RequiredStr
    type: RequiredStr
    status: RequiredStr
    entity_id: RequiredStr
    company: OptionalStr | None = None
    total_due: NonNegInt = 0


class OrderUpdate(Payload):
    order_id: RequiredStr
    user: RequiredStr = Field(None)
    type: RequiredStr = Field(None)
    status: RequiredStr = Field(None)
    entity_id: RequiredStr = Field(None)
    company: OptionalStr | None = None
    total_due: NonNegInt = Field(None)


class OrderIdQuery(Payload):
    order_id: RequiredStr


class OrderListQuery(Payload):
    type: RequiredStr
    entity_id: OptionalStr | None = None
    status: OptionalStr | None = None
    created_date: IsoDate | None = None
    start_date: IsoDate | None = None
    end_date: IsoDate | None = None

    def statuses(self) -> list[str]:
        return [part.strip() for part in (self.status or "").split(",") if part.strip()]


class ConfigUpsert(Payload):
    order_id: RequiredStr
    tax_percentage: NonNegFloat = Field(None)
    committed_date: IsoDateOrBlank | None = None
    entity_order: OptionalStr | None = None
    gate_pass: OptionalStr | None = None


class NoteUpdate(Payload):
    order_note_id: RequiredStr
    note: OptionalStr | None = None


# ---------- Orders ----------
def get_order_or_404(s: "Session", order_id: str, message: str | None = None) -> Order:
    order = s.get(Order, order_id)
    if not order:
        raise NotFound(message or f"Order with ID {order_id} not found", error="NotFoundError")
    return order


def require_order(s: "Session", order_id: str, message: str) -> Order:
    """Existence check used by child rows; their 404 message names the wire key."""
    order = s.get(Order, order_id)
    if not order:
        raise NotFound(message)
    return order


def _missing_order_message(order_id: str) -> str:
    return f"Order with ID {order_id} not found in orders table. Please create the order first."


def create_order(s: "Session", payload: OrderCreate, user: "User") -> Order:
    now = datetime.utcnow()
    order = Order(
        order_id=generate_custom_id(s, Order.order_id, "ORD"),
        user=payload.user,
        type=payload.type,
        company=payload.company or None,
        status=payload.status,
        total_due=payload.total_due,
        entity_id=payload.entity_id,
        created_at=now,
        updated_at=now,
    )
    s.add(order)
    s.flush()

    record_event(
        s,
        actor=user,
        action="order.create",
        entity_type="Order",
        entity_id=order.order_id,
        metadata={"type": order.type, "entity_id": order.entity_id},
    )
    recalculate_quietly(s, order.order_id)
    return order


def update_order(s: "Session", payload: OrderUpdate, user: "User") -> Order:
    order = get_order_or_404(s, payload.order_id)
    fields = payload.provided(exclude={"order_id"})
    if not fields:
        raise ValidationError("No fields provided to update")

    changes = {}
    for attr, raw in fields.items():
        new = raw if raw != "" else None
        old = getattr(order, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(order, attr, new)
    order.updated_at = datetime.utcnow()
    s.flush()

    record_event(
        s,
        actor=user,
        action="order.edit",
        entity_type="Order",
        entity_id=order.order_id,
        metadata={"changes": changes},
    )
    recalculate_quietly(s, order.order_id)
    return order


def fetch_order(s: "Session", order_id: str) -> Order:
    order = get_order_or_404(s, order_id)
    recalculate_quietly(s, order_id)
    return order


def list_orders(s: "Session", query: OrderListQuery, params: PageParams) -> tuple[list[Order], int]:
    q = s.query(Order).filter(Order.type == query.type)
    if query.entity_id:
        q = q.filter(Order.entity_id.like(f"%{query.entity_id}%"))
    statuses = query.statuses()
    if statuses:
        q = q.filter(Order.status.in_(statuses))
    created_day = func.date(Order.created_at, type_=Date)
    if query.created_date:
        q = q.filter(created_day == date.fromisoformat(query.created_date))
    if query.start_date:
        q = q.filter(created_day >= date.fromisoformat(query.start_date))
    if query.end_date:
        q = q.filter(created_day <= date.fromisoformat(query.end_date))

    total = q.count()
    orders = q.order_by(Order.created_at.desc()).offset(params.offset).limit(params.limit).all()
    if not orders:
        raise NotFound("No orders found matching the criteria", error="NotFoundError")
    return orders, total


# ---------- Config ----------
def _new_config(s: "Session", order_id: str, **values) -> OrderConfig:
    now = datetime.utcnow()
    config = OrderConfig(
        order_config_id=generate_custom_id(s, OrderConfig.order_config_id, "OCG"),
        order_id=order_id,
        tax_percentage=values.get("tax_percentage") or 0.0,
        committed_date=values.get("committed_date") or None,
        entity_order=values.get("entity_order") or None,
        gate_pass=values.get("gate_pass") or None,
        created_at=now,
        updated_at=now,
    )
    s.add(config)
    s.flush()
    return config


def get_or_create_config(s: "Session", order_id: str) -> OrderConfig:
    get_order_or_404(s, order_id, _missing_order_message(order_id))
    config = s.query(OrderConfig).filter(OrderConfig.order_id == order_id).one_or_none()
    if config is None:
        config = _new_config(s, order_id)
    return config


def upsert_config(s: "Session", payload: ConfigUpsert, user: "User") -> tuple[OrderConfig, bool]:
    """Returns the config and whether it was created."""
    get_order_or_404(s, payload.order_id, _missing_order_message(payload.order_id))
    fields = payload.provided(exclude={"order_id"})

    config = s.query(OrderConfig).filter(OrderConfig.order_id == payload.order_id).one_or_none()
    created = config is None
    if created:
        config = _new_config(s, payload.order_id, **fields)
        changes = {k: {"old": None, "new": v} for k, v in fields.items()}
    else:
        changes = {}
        for attr, raw in fields.items():
            new = raw if raw != "" else None
            old = getattr(config, attr)
            if new != old:
                changes[attr] = {"old": old, "new": new}
                setattr(config, attr, new)
        config.updated_at = datetime.utcnow()
        s.flush()

    record_event(
        s,
        actor=user,
        action="order_config.create" if created else "order_config.edit",
        entity_type="OrderConfig",
        entity_id=config.order_config_id,
        metadata={"order_id": config.order_id, "changes": changes},
    )
    recalculate_quietly(s, config.order_id)
    return config, created


# ---------- Notes ----------
def get_or_create_note(s: "Session", order_id: str) -> OrderNote:
    get_order_or_404(s, order_id, _missing_order_message(order_id))
    note = s.query(OrderNote).filter(OrderNote.order_id == order_id).one_or_none()
    if note is None:
        now = datetime.utcnow()
        note = OrderNote(
            order_note_id=generate_custom_id(s, OrderNote.order_note_id, "ONT"),
            order_id=order_id,
            note=None,
            created_at=now,
            updated_at=now,
        )
        s.add(note)
        s.flush()
    return note


def update_note(s: "Session", payload: NoteUpdate, user: "User") -> OrderNote:
    note = s.get(OrderNote, payload.order_note_id)
    if not note:
        raise NotFound(f"Order note with ID {payload.order_note_id} not found")
    note.note = payload.note or None
    note.updated_at = datetime.utcnow()
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_note.edit",
        entity_type="OrderNote",
        entity_id=note.order_note_id,
        metadata={"order_id": note.order_id},
    )
    return note
