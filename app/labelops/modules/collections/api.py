from __future__ import annotations

from flask import Blueprint

from app.labelops.api_utils import current_user, json_response, parse_body
from app.labelops.db import db_session
from app.labelops.modules.collections.service import COLLECTIONS, create_entry, list_entries
from app.labelops.rbac import require_permission

bp = Blueprint("collections", __name__)


def _list(kind_key: str):
    s = db_session()
    kind = COLLECTIONS[kind_key]
    return json_response({"data": [e.to_dict() for e in list_entries(s, kind)]}, 200)


def _create(kind_key: str):
    kind = COLLECTIONS[kind_key]
    payload = parse_body(kind.payload)
    s = db_session()
    entry = create_entry(s, kind, payload, current_user())
    s.commit()
    return json_response({"message": f"{kind.label} created successfully", "data": entry.to_dict()}, 201)


@bp.get("/fetch-all-material")
@require_permission("vendors.view")
def material_list():
    return _list("material")


@bp.get("/fetch-all-adhesive")
@require_permission("vendors.view")
def adhesive_list():
    return _list("adhesive")


@bp.get("/fetch-all-hardware")
@require_permission("vendors.view")
def hardware_list():
    return _list("hardware")


@bp.post("/create-material")
@require_permission("vendors.edit")
def material_create():
    return _create("material")


@bp.post("/create-adhesive")
@require_permission("vendors.edit")
def adhesive_create():
    return _create("adhesive")


@bp.post("/create-hardware")
@require_permission("vendors.edit")
def hardware_create():
    return _create("hardware")
