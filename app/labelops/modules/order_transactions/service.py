from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import Field

from app.labelops.api_utils import PageParams, generate_custom_id, id_number
from app.labelops.audit import record_event
from app.labelops.errors import NotFound, ValidationError
from app.labelops.modules.order_transactions.models import OrderTransaction
from app.labelops.modules.orders.service import require_order
from app.labelops.modules.orders.totals import recalculate_quietly
from app.labelops.schemas import NonNegFloat, OptionalStr, Payload, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User


class _TransactionDetails(Payload):
    transaction_date: OptionalStr | None = Field(None, alias="Transaction_Date")
    type: OptionalStr | None = Field(None, alias="Type")
    order_payment_type: OptionalStr | None = Field(None, alias="Order_Payment_Type")
    payment_method: OptionalStr | None = Field(None, alias="Payment_Method")
    notes: OptionalStr | None = Field(None, alias="Notes")


class TransactionCreate(_TransactionDetails):
    order_id: RequiredStr = Field(alias="Order_ID")
    actual_amount: NonNegFloat = Field(alias="Actual_Amount")
    declared_amount: NonNegFloat = Field(0.0, alias="Decalred_Amount")


class TransactionUpdate(_TransactionDetails):
    order_transaction_id: RequiredStr = Field(alias="Order_Transcation_ID")
    order_id: RequiredStr = Field(None, alias="Order_ID")
    actual_amount: NonNegFloat = Field(None, alias="Actual_Amount")
    declared_amount: NonNegFloat = Field(None, alias="Decalred_Amount")


class TransactionDelete(Payload):
    order_transaction_id: RequiredStr = Field(alias="Order_Transcation_ID")


def create_transaction(s: "Session", payload: TransactionCreate, user: "User") -> OrderTransaction:
    require_order(s, payload.order_id, "Order_ID does not exist")

    now = datetime.utcnow()
    values = {k: (v if v != "" else None) for k, v in payload.model_dump().items()}
    txn = OrderTransaction(
        order_transaction_id=generate_custom_id(s, OrderTransaction.order_transaction_id, "OTR"),
        created_at=now,
        updated_at=now,
        **values,
    )
    s.add(txn)
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_transaction.create",
        entity_type="OrderTransaction",
        entity_id=txn.order_transaction_id,
        metadata={"order_id": txn.order_id, "actual_amount": txn.actual_amount},
    )
    recalculate_quietly(s, txn.order_id)
    return txn


def update_transaction(s: "Session", payload: TransactionUpdate, user: "User") -> OrderTransaction:
    txn = s.get(OrderTransaction, payload.order_transaction_id)
    if not txn:
        raise NotFound("Order_Transcation_ID does not exist")
    fields = payload.provided(exclude={"order_transaction_id"})
    if "order_id" in fields:
        require_order(s, fields["order_id"], "Order_ID does not exist")
    if not fields:
        raise ValidationError("No fields provided to update")

    previous_order_id = txn.order_id
    changes = {}
    for attr, raw in fields.items():
        new = raw if raw != "" else None
        old = getattr(txn, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(txn, attr, new)
    txn.updated_at = datetime.utcnow()
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_transaction.edit",
        entity_type="OrderTransaction",
        entity_id=txn.order_transaction_id,
        metadata={"changes": changes},
    )
    recalculate_quietly(s, previous_order_id, txn.order_id)
    return txn


def delete_transaction(s: "Session", order_transaction_id: str, user: "User") -> None:
    txn = s.get(OrderTransaction, order_transaction_id)
    if not txn:
        raise NotFound(f"Order_Transcation_ID {order_transaction_id} not found")
    order_id = txn.order_id
    s.delete(txn)
    s.flush()

    record_event(
        s,
        actor=user,
        action="order_transaction.delete",
        entity_type="OrderTransaction",
        entity_id=order_transaction_id,
        metadata={"order_id": order_id},
    )
    recalculate_quietly(s, order_id)


def list_transactions(s: "Session", params: PageParams, order_id: str = "") -> tuple[list[OrderTransaction], int]:
    q = s.query(OrderTransaction)
    if order_id:
        q = q.filter(OrderTransaction.order_id == order_id)
    total = q.count()
    txns = (
        q.order_by(id_number(OrderTransaction.order_transaction_id, "OTR").asc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return txns, total
