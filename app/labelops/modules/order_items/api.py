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
from app.labelops.modules.order_items.service import (
    ItemCreate,
    ItemDelete,
    ItemUpdate,
    create_item,
    delete_item,
    list_items,
    update_item,
)
from app.labelops.rbac import require_permission

bp = Blueprint("order_items", __name__)


@bp.post("/create-order-item")
@require_permission("orders.edit")
def item_create():
    payload = parse_body(ItemCreate)
    s = db_session()
    item = create_item(s, payload, current_user())
    s.commit()
    return json_response({"message": "Order item created successfully", "data": nulls_to_empty(item.to_dict())}, 200)


@bp.patch("/update-order-item")
@require_permission("orders.edit")
def item_update():
    payload = parse_body(ItemUpdate)
    s = db_session()
    item = update_item(s, payload, current_user())
    s.commit()
    return json_response({"message": "Order item updated successfully", "data": nulls_to_empty(item.to_dict())}, 200)


@bp.delete("/delete-order-item")
@require_permission("orders.edit")
def item_delete():
    payload = parse_body(ItemDelete)
    s = db_session()
    delete_item(s, payload.order_item_id, current_user())
    s.commit()
    return json_response({"message": "Order item deleted successfully"}, 200)


@bp.get("/fetch-all-order-items")
@require_permission("orders.view")
def item_list():
    s = db_session()
    params = page_params()
    order_id = (request.args.get("order_id") or "").strip()
    search = (request.args.get("search") or "").strip()
    items, total = list_items(s, params, order_id=order_id, search=search)
    return json_response(
        {
            "data": [nulls_to_empty(i.to_dict()) for i in items],
            "pagination": pagination_block(
                total,
                params,
                orderFiltered=order_id or "All Orders",
                search=search or "No Search Applied",
            ),
        },
        200,
    )
