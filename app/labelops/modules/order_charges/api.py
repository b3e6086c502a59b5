from __future__ import annotations

import math

from flask import Blueprint, request

from app.labelops.api_utils import current_user, json_response, nulls_to_empty, page_params, parse_body
from app.labelops.db import db_session
from app.labelops.modules.order_charges.service import (
    ChargeCreate,
    ChargeDelete,
    ChargeUpdate,
    create_charge,
    delete_charge,
    list_charges,
    update_charge,
)
from app.labelops.rbac import require_permission

bp = Blueprint("order_charges", __name__)


@bp.post("/create-order-charge")
@require_permission("orders.edit")
def charge_create():
    payload = parse_body(ChargeCreate)
    s = db_session()
    charge = create_charge(s, payload, current_user())
    s.commit()
    return json_response(
        {"message": "Order charge created successfully", "Order_Charges_ID": charge.order_charges_id},
        201,
    )


@bp.route("/update-order-charge", methods=["PUT", "PATCH"])
@require_permission("orders.edit")
def charge_update():
    payload = parse_body(ChargeUpdate)
    s = db_session()
    charge = update_charge(s, payload, current_user())
    s.commit()
    return json_response(
        {"message": "Order charge updated successfully", "data": nulls_to_empty(charge.to_dict())},
        200,
    )


@bp.delete("/delete-order-charge")
@require_permission("orders.edit")
def charge_delete():
    payload = parse_body(ChargeDelete)
    s = db_session()
    delete_charge(s, payload.order_charges_id, current_user())
    s.commit()
    return json_response({"message": "Order charge deleted successfully"}, 200)


@bp.get("/fetch-all-order-charges")
@require_permission("orders.view")
def charge_list():
    s = db_session()
    params = page_params()
    order_id = (request.args.get("order_id") or "").strip()
    charges, total = list_charges(s, params, order_id=order_id)
    return json_response(
        {
            "data": [nulls_to_empty(c.to_dict()) for c in charges],
            "meta": {
                "page": params.page,
                "limit": params.limit,
                "total": total,
                "totalPages": max(1, math.ceil(total / params.limit)),
            },
        },
        200,
    )
