from __future__ import annotations

from flask import Blueprint, request

from app.labelops.api_utils import (
    current_user,
    json_response,
    nulls_to_empty,
    page_params,
    pagination_block,
    parse_body,
)
from app.labelops.db import db_session
from app.labelops.modules.order_transactions.service import (
    TransactionCreate,
    TransactionDelete,
    TransactionUpdate,
    create_transaction,
    delete_transaction,
    list_transactions,
    update_transaction,
)
from app.labelops.rbac import require_permission

bp = Blueprint("order_transactions", __name__)


@bp.post("/create-order-transaction")
@require_permission("orders.edit")
def transaction_create():
    payload = parse_body(TransactionCreate)
    s = db_session()
    txn = create_transaction(s, payload, current_user())
    s.commit()
    return json_response(
        {"message": "Order transaction created successfully", "data": nulls_to_empty(txn.to_dict())},
        201,
    )


@bp.patch("/update-order-transaction")
@require_permission("orders.edit")
def transaction_update():
    payload = parse_body(TransactionUpdate)
    s = db_session()
    txn = update_transaction(s, payload, current_user())
    s.commit()
    return json_response(
        {"message": "Order transaction updated successfully", "data": nulls_to_empty(txn.to_dict())},
        200,
    )


@bp.delete("/delete-order-transaction")
@require_permission("orders.edit")
def transaction_delete():
    payload = parse_body(TransactionDelete)
    s = db_session()
    delete_transaction(s, payload.order_transaction_id, current_user())
    s.commit()
    return json_response({"message": "Order transaction deleted successfully"}, 200)


@bp.get("/fetch-all-order-transactions")
@require_permission("orders.view")
def transaction_list():
    s = db_session()
    params = page_params()
    order_id = (request.args.get("order_id") or "").strip()
    txns, total = list_transactions(s, params, order_id=order_id)
    return json_response(
        {
            "data": [nulls_to_empty(t.to_dict()) for t in txns],
            "pagination": pagination_block(total, params, orderFiltered=order_id or "All Orders"),
        },
        200,
    )
