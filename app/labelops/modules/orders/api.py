from __future__ import annotations

from flask import Blueprint, request

from app.labelops.api_utils import (
    current_user,
    json_response,
    nulls_to_empty,
    page_params,
    pagination_block,
    parse_body,
    parse_query,
)
from app.labelops.db import db_session
from app.labelops.errors import ValidationError
from app.labelops.modules.orders.service import (
    ConfigUpsert,
    NoteUpdate,
    OrderCreate,
    OrderIdQuery,
    OrderListQuery,
    OrderUpdate,
    create_order,
    fetch_order,
    get_or_create_config,
    get_or_create_note,
    get_order_or_404,
    list_orders,
    update_note,
    update_order,
    upsert_config,
)
from app.labelops.modules.orders.totals import recalculate_order_total_due
from app.labelops.rbac import require_permission

header_bp = Blueprint("order_header", __name__)
list_bp = Blueprint("order_list", __name__)
config_bp = Blueprint("order_config", __name__)
notes_bp = Blueprint("order_notes", __name__)


# ---------- Header ----------
@header_bp.post("/create-order-header")
@require_permission("orders.edit")
def order_create():
    payload = parse_body(OrderCreate)
    s = db_session()
    order = create_order(s, payload, current_user())
    s.commit()
    return json_response(nulls_to_empty(order.to_dict()), 201)


@header_bp.get("/fetch-order-by-id")
@require_permission("orders.view")
def order_fetch():
    query = parse_query(OrderIdQuery, "order_id")
    s = db_session()
    order = fetch_order(s, query.order_id)
    s.commit()
    return json_response({"data": nulls_to_empty(order.to_dict())}, 200)


@header_bp.patch("/update-order-header")
@require_permission("orders.edit")
def order_update():
    payload = parse_body(OrderUpdate)
    s = db_session()
    order = update_order(s, payload, current_user())
    s.commit()
    return json_response({"message": "Order updated successfully", "data": nulls_to_empty(order.to_dict())}, 200)


@header_bp.post("/recalculate-total-due")
@require_permission("orders.edit")
def order_recalculate():
    body = request.get_json(silent=True)
    order_id = body.get("order_id") if isinstance(body, dict) else None
    if not isinstance(order_id, str) or not order_id.strip():
        raise ValidationError("order_id is required")

    s = db_session()
    order = get_order_or_404(s, order_id.strip())
    result = recalculate_order_total_due(s, order.order_id)
    s.commit()
    return json_response({**result, "message": "Order total_due recalculated successfully"}, 200)


# ---------- List ----------
@list_bp.get("/fetch-orders")
@require_permission("orders.view")
def order_list():
    query = parse_query(OrderListQuery, "type", "entity_id", "status", "created_date", "start_date", "end_date")
    params = page_params()
    s = db_session()
    orders, total = list_orders(s, query, params)
    return json_response(
        {
            "data": [nulls_to_empty(o.to_dict()) for o in orders],
            "pagination": pagination_block(total, params),
        },
        200,
    )


# ---------- Config ----------
@config_bp.get("/fetch-order-config")
@require_permission("orders.view")
def config_fetch():
    query = parse_query(OrderIdQuery, "order_id")
    s = db_session()
    config = get_or_create_config(s, query.order_id)
    s.commit()
    return json_response({"data": nulls_to_empty(config.to_dict())}, 200)


@config_bp.route("/upsert-order-config", methods=["POST", "PATCH"])
@require_permission("orders.edit")
def config_upsert():
    payload = parse_body(ConfigUpsert)
    s = db_session()
    config, created = upsert_config(s, payload, current_user())
    s.commit()
    return json_response(nulls_to_empty(config.to_dict()), 201 if created else 200)


# ---------- Notes ----------
@notes_bp.get("/fetch-order-note")
@require_permission("orders.view")
def note_fetch():
    query = parse_query(OrderIdQuery, "order_id")
    s = db_session()
    note = get_or_create_note(s, query.order_id)
    s.commit()
    return json_response({"data": nulls_to_empty(note.to_dict())}, 200)


@notes_bp.patch("/update-order-note")
@require_permission("orders.edit")
def note_update():
    payload = parse_body(NoteUpdate)
    s = db_session()
    note = update_note(s, payload, current_user())
    s.commit()
    return json_response({"data": nulls_to_empty(note.to_dict())}, 200)
