from datetime import date, timedelta

from app.labelops.admin import sanitize_username
from helpers import login, make_vendor


def _create_user(client, **body):
    return client.post("/admin/create-user-api", json=body)


def test_sanitize_username():
    assert sanitize_username("  Jane.Doe+ops ") == "janedoeops"
    assert sanitize_username("ops_team-2") == "ops_team-2"


def test_create_user(admin_client):
    r = _create_user(
        admin_client,
        email="Jane.Doe@Example.com",
        password="s3cret-pass",
        firstName="Jane",
        lastName="Doe",
        role="admin",
    )
    assert r.status_code == 200
    assert r.json["success"] is True
    user = r.json["user"]
    assert user["email"] == "jane.doe@example.com"
    assert user["username"] == "janedoe"
    assert user["firstName"] == "Jane"
    assert user["role"] == "admin"

    # the new account can sign in
    admin_client.post("/auth/logout")
    login(admin_client, "jane.doe@example.com", "s3cret-pass")
    r = admin_client.get("/auth/me")
    assert "users.create" in r.json["permissions"]


def test_generated_usernames_are_unique(admin_client):
    r = _create_user(admin_client, email="al@example.com", password="password1")
    assert r.json["user"]["username"] == "aluser"
    assert r.json["user"]["role"] == "user"

    r = _create_user(admin_client, email="al@example.org", password="password1", role="superuser")
    assert r.json["user"]["username"] == "aluser1"
    assert r.json["user"]["role"] == "user"


def test_create_user_validation(admin_client):
    r = _create_user(admin_client, email="x@example.com")
    assert r.status_code == 400
    assert r.json["message"] == "Email and password are required"

    r = _create_user(admin_client, email="not-an-email", password="password1")
    assert r.json["message"] == "Invalid email format"

    r = _create_user(admin_client, email="x@example.com", password="short")
    assert r.json["message"] == "Password must be at least 8 characters"

    r = _create_user(admin_client, email="x@example.com", password="password1", username="a!b")
    assert r.status_code == 400
    assert r.json["message"].startswith("Username must be 4-64 characters")

    r = admin_client.post("/admin/create-user-api", data="nope", content_type="text/plain")
    assert r.status_code == 400


def test_create_user_conflicts(admin_client):
    r = _create_user(admin_client, email="clerk@example.com", password="password1")
    assert r.status_code == 409
    assert r.json["message"] == "A user with this email already exists"

    _create_user(admin_client, email="sam@example.com", password="password1", username="sam_ops")
    r = _create_user(admin_client, email="sam2@example.com", password="password1", username="SAM_OPS")
    assert r.status_code == 409


def test_create_user_requires_permission(client):
    login(client, "clerk@example.com")
    r = _create_user(client, email="new@example.com", password="password1")
    assert r.status_code == 403

    r = client.get("/admin/audit")
    assert r.status_code == 403


def test_audit_filters(admin_client):
    make_vendor(admin_client)
    _create_user(admin_client, email="pat@example.com", password="password1")

    r = admin_client.get("/admin/audit?action=.create")
    assert [e["action"] for e in r.json["data"]] == ["user.create", "vendor.create"]
    assert r.json["data"][0]["actor_user_email"] == "admin@example.com"

    r = admin_client.get("/admin/audit?action=user.")
    assert [e["action"] for e in r.json["data"]] == ["user.create"]

    r = admin_client.get("/admin/audit?actor_email=ADMIN@&action=.create")
    assert len(r.json["data"]) == 2
    r = admin_client.get("/admin/audit?actor_email=clerk")
    assert r.json["data"] == []

    today = date.today()
    yesterday = (today - timedelta(days=1)).isoformat()
    tomorrow = (today + timedelta(days=1)).isoformat()
    later = (today + timedelta(days=2)).isoformat()
    r = admin_client.get(f"/admin/audit?date_from={yesterday}&date_to={tomorrow}&action=.create")
    assert len(r.json["data"]) == 2
    r = admin_client.get(f"/admin/audit?date_from={later}")
    assert r.json["data"] == []


def test_audit_rejects_bad_dates(admin_client):
    r = admin_client.get("/admin/audit?date_from=2024-13-01&date_to=yesterday")
    assert r.status_code == 400
    assert r.json["message"] == "Invalid query parameters"
    assert set(r.json["details"]["fieldErrors"]) == {"date_from", "date_to"}
