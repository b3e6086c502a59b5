from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, request, session
from werkzeug.security import check_password_hash

from app.labelops.api_utils import json_response, parse_body
from app.labelops.audit import record_event
from app.labelops.db import db_session
from app.labelops.errors import TooManyRequests, Unauthorized
from app.labelops.models import User
from app.labelops.schemas import Payload, RequiredStr
from app.labelops.security import ensure_csrf_token

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


class LoginPayload(Payload):
    email: RequiredStr
    password: RequiredStr


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    s = db_session()
    user = s.get(User, int(user_id))
    if not user or not user.is_active:
        session.pop("user_id", None)
        g.current_user = None
        return
    g.current_user = user


@bp.post("/login")
def login_post():
    payload = parse_body(LoginPayload)
    email = payload.email.lower()
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        raise TooManyRequests("Too many login attempts. Please wait 5 minutes.")

    _record_attempt(ip)

    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not user.is_active or not check_password_hash(user.password_hash, payload.password):
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity_type="User",
            entity_id=email,
            reason="Invalid credentials",
            metadata={"email": email},
        )
        s.commit()
        current_app.logger.info("Login failed (email=%s ip=%s)", email, ip)
        raise Unauthorized("Invalid credentials.")

    session["user_id"] = user.id
    _login_attempts[ip].clear()
    record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()
    return json_response({"user": user.to_dict(), "csrf_token": ensure_csrf_token()}, 200)


@bp.post("/logout")
def logout():
    s = db_session()
    user = getattr(g, "current_user", None)
    if user:
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    session.pop("user_id", None)
    return json_response({"message": "Logged out"}, 200)


@bp.get("/me")
def me():
    user: User | None = getattr(g, "current_user", None)
    if not user:
        raise Unauthorized("Authentication required")
    return json_response(
        {"user": user.to_dict(), "permissions": user.permission_keys(), "csrf_token": ensure_csrf_token()},
        200,
    )
