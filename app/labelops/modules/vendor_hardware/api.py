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
from app.labelops.modules.vendor_hardware.service import (
    HardwareCreate,
    HardwareDelete,
    HardwareUpdate,
    create_hardware,
    delete_hardware,
    list_hardware,
    update_hardware,
)
from app.labelops.rbac import require_permission

bp = Blueprint("vendor_hardware", __name__)


@bp.post("/create-new-hardware")
@require_permission("vendors.edit")
def hardware_create():
    payload = parse_body(HardwareCreate)
    s = db_session()
    hw = create_hardware(s, payload, current_user())
    s.commit()
    return json_response({"message": "Hardware created successfully", "data": nulls_to_empty(hw.to_dict())}, 201)


@bp.patch("/update-hardware")
@require_permission("vendors.edit")
def hardware_update():
    payload = parse_body(HardwareUpdate)
    s = db_session()
    hw = update_hardware(s, payload, current_user())
    s.commit()
    return json_response({"message": "Hardware updated successfully", "data": nulls_to_empty(hw.to_dict())}, 200)


@bp.delete("/delete-hardware")
@require_permission("vendors.edit")
def hardware_delete():
    payload = parse_body(HardwareDelete)
    s = db_session()
    delete_hardware(s, payload.hardware_code, current_user())
    s.commit()
    return json_response({"message": "Hardware deleted successfully"}, 200)


@bp.get("/fetch-all-hardware")
@require_permission("vendors.view")
def hardware_list():
    s = db_session()
    params = page_params()
    vendor_id = (request.args.get("Vendor_ID") or "").strip()
    search = (request.args.get("search") or "").strip()
    rows, total = list_hardware(s, params, vendor_id=vendor_id, search=search)
    data = []
    for hw, vendor_name in rows:
        row = hw.to_dict()
        row["Vendor_Name"] = vendor_name
        data.append(nulls_to_empty(row))
    return json_response(
        {
            "data": data,
            "pagination": pagination_block(
                total,
                params,
                vendorFiltered=vendor_id or "All Vendors",
                search=search or "No Search Applied",
            ),
        },
        200,
    )
