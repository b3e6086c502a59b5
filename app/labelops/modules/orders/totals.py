"""
Order total due and derived status.

The totals are recomputed from the order's child rows every time, so running the
calculation twice in a row gives the same answer and the same stored values.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from app.labelops.errors import NotFound
from app.labelops.modules.order_charges.models import OrderCharge
from app.labelops.modules.order_items.models import OrderItem
from app.labelops.modules.order_transactions.models import OrderTransaction
from app.labelops.modules.orders.models import Order, OrderConfig

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

STATUS_INCOMPLETE = "Incomplete"
STATUS_COMPLETE = "Complete"
STATUS_OVERDUE = "Overdue"
STATUS_OVERPAID = "Overpaid"
STATUS_PENDING_DUES = "Pending Dues"
STATUS_IN_PROGRESS = "In Progress"
STATUS_NOT_RECEIVED = "Not Received"


def _sum(s: "Session", column, order_column, order_id: str) -> float:
    total = s.execute(select(func.coalesce(func.sum(column), 0)).where(order_column == order_id)).scalar()
    return float(total or 0)


def _count(s: "Session", order_column, order_id: str, *extra) -> int:
    return int(s.execute(select(func.count()).where(order_column == order_id, *extra)).scalar() or 0)


def _is_past(committed_date: str | None, now: datetime) -> bool:
    if not committed_date:
        return False
    try:
        when = datetime.fromisoformat(committed_date)
    except ValueError:
        return False
    if when.tzinfo is not None:
        when = when.replace(tzinfo=None) - when.utcoffset()
    return when < now


def derive_status(
    *,
    total_items: int,
    received_items: int,
    transaction_count: int,
    total_due: float,
    gross_total: float,
    paid_total: float,
    committed_date: str | None,
    now: datetime,
) -> str:
    """First matching rule wins."""
    if total_items == 0:
        return STATUS_INCOMPLETE
    all_received = received_items == total_items
    some_received = received_items > 0
    if all_received and total_due == 0:
        return STATUS_COMPLETE
    if not all_received and _is_past(committed_date, now):
        return STATUS_OVERDUE
    if paid_total > gross_total:
        return STATUS_OVERPAID
    if some_received and total_due > 0:
        return STATUS_PENDING_DUES
    if some_received or transaction_count > 0:
        return STATUS_IN_PROGRESS
    return STATUS_NOT_RECEIVED


def recalculate_order_total_due(s: "Session", order_id: str) -> dict[str, Any]:
    order = s.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order with ID {order_id} not found")
    s.flush()

    items_total = _sum(s, OrderItem.actual_amount, OrderItem.order_id, order_id)
    charges_total = _sum(s, OrderCharge.charges, OrderCharge.order_id, order_id)
    paid_total = _sum(s, OrderTransaction.actual_amount, OrderTransaction.order_id, order_id)

    config = s.execute(select(OrderConfig).where(OrderConfig.order_id == order_id)).scalar_one_or_none()
    tax_percentage = float(config.tax_percentage or 0) if config else 0.0
    committed_date = config.committed_date if config else None

    # Tax applies to item amounts only, never to charges.
    tax_on_items = items_total * max(0.0, tax_percentage) / 100
    subtotal = items_total + charges_total
    gross_total = subtotal + tax_on_items
    total_due = max(0.0, gross_total - paid_total)

    now = datetime.utcnow()
    status = derive_status(
        total_items=_count(s, OrderItem.order_id, order_id),
        received_items=_count(s, OrderItem.order_id, order_id, OrderItem.movement == "Y"),
        transaction_count=_count(s, OrderTransaction.order_id, order_id),
        total_due=total_due,
        gross_total=gross_total,
        paid_total=paid_total,
        committed_date=committed_date,
        now=now,
    )

    order.total_due = total_due
    order.status = status
    order.updated_at = now
    s.flush()

    return {
        "order_id": order_id,
        "totals": {
            "itemsActualTotal": items_total,
            "chargesTotal": charges_total,
            "paidTotal": paid_total,
            "taxPercentage": tax_percentage,
            "taxOnItemsActual": tax_on_items,
            "subtotal": subtotal,
        },
        "total_due": total_due,
        "status": status,
    }


def recalculate_quietly(s: "Session", *order_ids: str | None) -> None:
    """
    Best-effort recalculation after a mutation. Each order runs in its own
    savepoint; a failure is logged and rolled back without failing the caller.
    """
    for order_id in dict.fromkeys(oid for oid in order_ids if oid):
        try:
            with s.begin_nested():
                recalculate_order_total_due(s, order_id)
        except Exception:
            logger.warning("total_due recalculation failed for order %s", order_id, exc_info=True)
