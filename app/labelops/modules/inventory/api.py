from __future__ import annotations

from flask import Blueprint

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
from app.labelops.modules.inventory.service import (
    InventoryCreate,
    InventoryDelete,
    InventoryListQuery,
    InventoryUpdate,
    SyncRequest,
    create_inventory,
    delete_inventory,
    list_inventory,
    sync_order_to_inventory,
    update_inventory,
)
from app.labelops.modules.inventory.split import (
    EligibilityQuery,
    SplitOptionsQuery,
    SplitRequest,
    check_eligibility,
    split_options,
    submit_split,
)
from app.labelops.rbac import require_permission

bp = Blueprint("inventory", __name__)


@bp.post("/create-order-inventory")
@require_permission("inventory.edit")
def inventory_create():
    payload = parse_body(InventoryCreate)
    s = db_session()
    row = create_inventory(s, payload, current_user())
    s.commit()
    return json_response(
        {"message": "Order inventory created successfully", "data": nulls_to_empty(row.to_dict())},
        201,
    )


@bp.patch("/update-order-inventory")
@require_permission("inventory.edit")
def inventory_update():
    payload = parse_body(InventoryUpdate)
    s = db_session()
    row = update_inventory(s, payload, current_user())
    s.commit()
    return json_response(
        {"message": "Order inventory updated successfully", "data": nulls_to_empty(row.to_dict())},
        200,
    )


@bp.delete("/delete-order-inventory")
@require_permission("inventory.edit")
def inventory_delete():
    payload = parse_body(InventoryDelete)
    s = db_session()
    delete_inventory(s, payload.inventory_id, current_user())
    s.commit()
    return json_response({"message": "Order inventory deleted successfully"}, 200)


@bp.get("/fetch-all-order-inventory")
@require_permission("inventory.view")
def inventory_list():
    query = parse_query(InventoryListQuery, "order_id", "mode", "type", "group_by", "search")
    params = page_params()
    s = db_session()
    rows, total = list_inventory(s, query, params)
    return json_response(
        {
            "data": [nulls_to_empty(r) for r in rows],
            "pagination": pagination_block(total, params, orderFiltered=query.order_id or "All Orders"),
            "mode": query.mode or "all",
            "type": query.type or "",
            "group_by": query.group_by or "",
        },
        200,
    )


@bp.post("/sync-to-inventory")
@require_permission("inventory.edit")
def inventory_sync():
    payload = parse_body(SyncRequest)
    s = db_session()
    result = sync_order_to_inventory(s, payload.order_id, current_user())
    s.commit()
    return json_response(result, 200)


@bp.get("/check-split-eligibility")
@require_permission("inventory.view")
def split_eligibility():
    query = parse_query(EligibilityQuery, "inventory_id", "barcode_tag", "product_code")
    s = db_session()
    return json_response(check_eligibility(s, query), 200)


@bp.get("/fetch-split-options")
@require_permission("inventory.view")
def split_options_list():
    query = parse_query(SplitOptionsQuery, "product_code", "remaining_width", "is_first_split")
    s = db_session()
    return json_response({"options": split_options(s, query)}, 200)


@bp.post("/submit-split")
@require_permission("inventory.edit")
def split_submit():
    payload = parse_body(SplitRequest)
    s = db_session()
    result = submit_split(s, payload, current_user())
    s.commit()
    return json_response(result, 200)
