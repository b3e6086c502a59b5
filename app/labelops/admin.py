import re
from datetime import date, datetime, time, timedelta

from flask import Blueprint, request
from pydantic import Field
from werkzeug.security import generate_password_hash

from app.labelops.api_utils import current_user, json_response, validate_payload
from app.labelops.audit import record_event
from app.labelops.db import db_session
from app.labelops.errors import Conflict, ValidationError
from app.labelops.models import AuditEvent, Role, User
from app.labelops.rbac import require_permission
from app.labelops.schemas import OptionalStr, Payload

bp = Blueprint("admin", __name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_USERNAME_BAD_CHARS = re.compile(r"[^a-z0-9_-]")
ROLE_KEYS = ("admin", "user")


class UserCreate(Payload):
    email: OptionalStr = ""
    password: str = Field("", strict=True)
    username: OptionalStr = ""
    first_name: OptionalStr = Field("", alias="firstName")
    last_name: OptionalStr = Field("", alias="lastName")
    role: OptionalStr = "user"


def _parse_date(s: str) -> date | None:
    s = (s or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def sanitize_username(raw: str) -> str:
    return _USERNAME_BAD_CHARS.sub("", (raw or "").strip().lower())[:64]


def _unique_username(s, base: str) -> str:
    """Derive a free username from an email local part: ``jane``, ``jane1``, ``jane2``..."""
    base = sanitize_username(base)
    if len(base) < 4:
        base = (base + "user")[:64]
    candidate = base
    n = 0
    while s.query(User).filter(User.username == candidate).one_or_none() is not None:
        n += 1
        candidate = f"{base[:60]}{n}"
    return candidate


@bp.post("/create-user-api")
@require_permission("users.create")
def create_user_api():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be JSON")
    payload = validate_payload(UserCreate, body)

    email = payload.email.lower()
    if not email or not payload.password:
        raise ValidationError("Email and password are required")
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    if len(payload.password) < 8:
        raise ValidationError("Password must be at least 8 characters")

    s = db_session()
    if payload.username:
        username = sanitize_username(payload.username)
        if not 4 <= len(username) <= 64:
            raise ValidationError("Username must be 4-64 characters of a-z, 0-9, _ or -")
        if s.query(User).filter(User.username == username).one_or_none() is not None:
            raise Conflict("A user with this email already exists")
    else:
        username = _unique_username(s, email.split("@", 1)[0])

    if s.query(User).filter(User.email == email).one_or_none() is not None:
        raise Conflict("A user with this email already exists")

    role_key = payload.role.lower() if payload.role.lower() in ROLE_KEYS else "user"
    role = s.query(Role).filter(Role.key == role_key).one_or_none()

    new_user = User(
        email=email,
        username=username,
        first_name=payload.first_name or None,
        last_name=payload.last_name or None,
        password_hash=generate_password_hash(payload.password),
        is_active=True,
    )
    s.add(new_user)
    if role is not None:
        new_user.roles.append(role)
    s.flush()

    record_event(
        s,
        actor=current_user(),
        action="user.create",
        entity_type="User",
        entity_id=str(new_user.id),
        metadata={"email": email, "username": username, "role": role_key},
    )
    s.commit()
    return json_response(
        {
            "success": True,
            "user": {
                "id": new_user.id,
                "email": new_user.email,
                "firstName": new_user.first_name or "",
                "lastName": new_user.last_name or "",
                "username": new_user.username,
                "role": role_key,
            },
        },
        200,
    )


@bp.get("/audit")
@require_permission("admin.view")
def audit_list():
    """
    Latest 200 audit events, newest first. Filters:
    - action (contains)
    - actor_email (contains)
    - date range (YYYY-MM-DD, inclusive)
    """
    s = db_session()
    action = (request.args.get("action") or "").strip()
    actor_email = (request.args.get("actor_email") or "").strip()
    raw_from = (request.args.get("date_from") or "").strip()
    raw_to = (request.args.get("date_to") or "").strip()
    date_from = _parse_date(raw_from)
    date_to = _parse_date(raw_to)

    field_errors: dict[str, list[str]] = {}
    if raw_from and not date_from:
        field_errors["date_from"] = ["date_from must be YYYY-MM-DD"]
    if raw_to and not date_to:
        field_errors["date_to"] = ["date_to must be YYYY-MM-DD"]
    if field_errors:
        raise ValidationError("Invalid query parameters", details={"formErrors": [], "fieldErrors": field_errors})

    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action.like(f"%{action}%"))
    if actor_email:
        q = q.filter(AuditEvent.actor_user_email.like(f"%{actor_email.lower()}%"))
    if date_from:
        q = q.filter(AuditEvent.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        # inclusive end-date (treat as whole day)
        q = q.filter(AuditEvent.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    events = q.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(200).all()
    return json_response({"data": [e.to_dict() for e in events]}, 200)
