"""
Shared helpers for the JSON API blueprints: response shaping, request parsing,
pagination and custom id generation.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, TypeVar

from flask import current_app, g, jsonify, request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Integer, cast, func, select
from sqlalchemy.orm import Session

from app.labelops.errors import ValidationError
from app.labelops.models import User

M = TypeVar("M", bound=BaseModel)


def json_response(body: Any, status: int = 200):
    return jsonify(body), status


def nulls_to_empty(row: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in row.items():
        if v is None:
            out[k] = ""
        elif isinstance(v, (datetime, date)):
            out[k] = v.isoformat()
        else:
            out[k] = v
    return out


def to_safe_int(value: str | None, fallback: int) -> int:
    if not value:
        return fallback
    try:
        v = int(value.strip())
    except ValueError:
        return fallback
    return v if v > 0 else fallback


def current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


# ---------- Request parsing ----------
def flatten_errors(exc: PydanticValidationError) -> dict[str, Any]:
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        msg = err.get("msg", "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        loc = err.get("loc") or ()
        if not loc:
            form_errors.append(msg)
            continue
        field_errors.setdefault(str(loc[0]), []).append(msg)
    return {"formErrors": form_errors, "fieldErrors": field_errors}


def validate_payload(schema: type[M], data: Any, *, message: str = "Invalid request payload") -> M:
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(message, details=flatten_errors(e)) from e


def parse_body(schema: type[M]) -> M:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be JSON")
    return validate_payload(schema, body)


def parse_query(schema: type[M], *names: str) -> M:
    raw = {n: request.args.get(n) for n in names if request.args.get(n) is not None}
    return validate_payload(schema, raw, message="Invalid query parameters")


# ---------- Pagination ----------
@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params() -> PageParams:
    default_limit = int(current_app.config.get("PAGE_LIMIT_DEFAULT", 10))
    max_limit = int(current_app.config.get("PAGE_LIMIT_MAX", 100))
    page = to_safe_int(request.args.get("page"), 1)
    limit = min(to_safe_int(request.args.get("limit"), default_limit), max_limit)
    return PageParams(page=page, limit=limit)


def pagination_block(total: int, params: PageParams, **extra: Any) -> dict[str, Any]:
    block: dict[str, Any] = {
        "total": total,
        "page": params.page,
        "limit": params.limit,
        "totalPages": max(1, math.ceil(total / params.limit)),
    }
    block.update(extra)
    return block


# ---------- Custom ids ----------
def id_number(column, prefix: str):
    """SQL expression for the numeric suffix of ids shaped like ``PREFIX-<n>``."""
    return cast(func.substr(column, len(prefix) + 2), Integer)


def generate_custom_id(s: Session, column, prefix: str) -> str:
    """
    Next id in the ``PREFIX-<n>`` sequence for the given column.
    Must run in the same transaction as the INSERT that uses it.
    """
    last = s.execute(
        select(func.max(id_number(column, prefix))).where(column.like(f"{prefix}-%"))
    ).scalar()
    return f"{prefix}-{int(last or 0) + 1}"
