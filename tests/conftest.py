import pytest
from werkzeug.security import generate_password_hash

from app.labelops import create_app
from app.labelops import auth as auth_module
from app.labelops.db import session_scope
from app.labelops.models import Base, Permission, Role, User
from helpers import login

PERMISSIONS = [
    ("vendors.view", "Vendors: view catalog"),
    ("vendors.edit", "Vendors: edit catalog"),
    ("orders.view", "Orders: view"),
    ("orders.edit", "Orders: edit"),
    ("inventory.view", "Inventory: view"),
    ("inventory.edit", "Inventory: edit and split"),
    ("users.create", "Users: create accounts"),
    ("admin.view", "Admin: view audit trail"),
]


def _seed(s):
    perms = {key: Permission(key=key, name=name) for key, name in PERMISSIONS}
    s.add_all(perms.values())

    admin = Role(key="admin", name="Administrator")
    admin.permissions.extend(perms.values())
    user = Role(key="user", name="User")
    user.permissions.extend(p for k, p in perms.items() if k not in ("users.create", "admin.view"))
    viewer = Role(key="viewer", name="Viewer")
    viewer.permissions.extend(p for k, p in perms.items() if k.endswith(".view") and k != "admin.view")
    s.add_all([admin, user, viewer])

    for email, role in (
        ("admin@example.com", admin),
        ("clerk@example.com", user),
        ("viewer@example.com", viewer),
    ):
        u = User(email=email, password_hash=generate_password_hash("pw"), is_active=True)
        u.roles.append(role)
        s.add(u)


@pytest.fixture(autouse=True)
def _reset_login_attempts():
    auth_module._login_attempts.clear()
    yield
    auth_module._login_attempts.clear()


@pytest.fixture()
def labelops_app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        _seed(s)
    return app


@pytest.fixture()
def client(labelops_app):
    return labelops_app.test_client()


@pytest.fixture()
def admin_client(client):
    login(client)
    return client

