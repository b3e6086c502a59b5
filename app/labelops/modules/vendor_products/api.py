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
from app.labelops.modules.vendor_products.service import (
    ProductCreate,
    ProductDelete,
    ProductUpdate,
    create_product,
    delete_product,
    list_products,
    update_product,
)
from app.labelops.rbac import require_permission

bp = Blueprint("vendor_products", __name__)


@bp.post("/create-new-product")
@require_permission("vendors.edit")
def product_create():
    payload = parse_body(ProductCreate)
    s = db_session()
    product = create_product(s, payload, current_user())
    s.commit()
    return json_response({"message": "Product created successfully", "data": nulls_to_empty(product.to_dict())}, 201)


@bp.patch("/update-product")
@require_permission("vendors.edit")
def product_update():
    payload = parse_body(ProductUpdate)
    s = db_session()
    product = update_product(s, payload, current_user())
    s.commit()
    return json_response(
        {"message": "Vendor Product updated successfully", "data": nulls_to_empty(product.to_dict())},
        200,
    )


@bp.delete("/delete-product")
@require_permission("vendors.edit")
def product_delete():
    payload = parse_body(ProductDelete)
    s = db_session()
    delete_product(s, payload.product_code, current_user())
    s.commit()
    return json_response({"message": "Vendor Product deleted successfully"}, 200)


@bp.get("/fetch-all-products")
@require_permission("vendors.view")
def product_list():
    s = db_session()
    params = page_params()
    vendor_id = (request.args.get("Vendor_ID") or "").strip()
    search = (request.args.get("search") or "").strip()
    rows, total = list_products(s, params, vendor_id=vendor_id, search=search)
    data = []
    for product, vendor_name in rows:
        row = product.to_dict()
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
