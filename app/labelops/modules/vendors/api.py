from __future__ import annotations

from flask import Blueprint, request

from app.labelops.api_utils import (
    current_user,
    id_number,
    json_response,
    nulls_to_empty,
    page_params,
    pagination_block,
    parse_body,
)
from app.labelops.db import db_session
from app.labelops.modules.vendors.models import Vendor
from app.labelops.modules.vendors.service import (
    VendorCreate,
    VendorDelete,
    VendorUpdate,
    create_vendor,
    delete_vendor,
    list_vendors,
    update_vendor,
)
from app.labelops.rbac import require_permission

bp = Blueprint("vendors", __name__)


@bp.post("/create-new-vendor")
@require_permission("vendors.edit")
def vendor_create():
    payload = parse_body(VendorCreate)
    s = db_session()
    vendor = create_vendor(s, payload, current_user())
    s.commit()
    return json_response(nulls_to_empty(vendor.to_dict()), 201)


@bp.patch("/update-vendor")
@require_permission("vendors.edit")
def vendor_update():
    payload = parse_body(VendorUpdate)
    s = db_session()
    vendor = update_vendor(s, payload, current_user())
    s.commit()
    return json_response({"message": "Vendor updated successfully", "data": nulls_to_empty(vendor.to_dict())}, 200)


@bp.delete("/delete-vendor")
@require_permission("vendors.edit")
def vendor_delete():
    payload = parse_body(VendorDelete)
    s = db_session()
    delete_vendor(s, payload.vendor_id, current_user())
    s.commit()
    return json_response({"message": "Vendor deleted successfully", "Vendor_ID": payload.vendor_id}, 200)


@bp.get("/fetch-all-vendors")
@require_permission("vendors.view")
def vendor_list():
    s = db_session()
    params = page_params()
    search = (request.args.get("search") or "").strip()
    vendors, total = list_vendors(s, params, search)
    return json_response(
        {
            "data": [nulls_to_empty(v.to_dict()) for v in vendors],
            "pagination": pagination_block(total, params, search=search or "No Search Applied"),
        },
        200,
    )


@bp.get("/fetch-all-vendor-names")
@require_permission("vendors.view")
def vendor_names():
    s = db_session()
    rows = (
        s.query(Vendor.vendor_id, Vendor.vendor_name)
        .order_by(id_number(Vendor.vendor_id, "VDR").asc())
        .all()
    )
    return json_response({"data": [{"Vendor_ID": vid, "Vendor_Name": name} for vid, name in rows]}, 200)
