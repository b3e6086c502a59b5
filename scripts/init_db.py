import sys
from pathlib import Path
import os

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.labelops.models import Permission, Role, User  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402

PERMISSIONS = (
    ("vendors.view", "Vendors: view catalog"),
    ("vendors.edit", "Vendors: edit catalog"),
    ("orders.view", "Orders: view"),
    ("orders.edit", "Orders: edit"),
    ("inventory.view", "Inventory: view"),
    ("inventory.edit", "Inventory: edit and split"),
    ("users.create", "Users: create accounts"),
    ("admin.view", "Admin: view audit trail"),
)
USER_PERMISSION_KEYS = tuple(k for k, _ in PERMISSIONS if k.endswith((".view", ".edit")) and k != "admin.view")


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed permissions/roles/admin user in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@labelops.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///labelops.db").strip()

    # Direct engine/session so release can run this without importing app.wsgi.
    with script_session(db_url) as s:
        perms: dict[str, Permission] = {}
        for key, name in PERMISSIONS:
            p = s.query(Permission).filter(Permission.key == key).one_or_none()
            if not p:
                p = Permission(key=key, name=name)
                s.add(p)
            perms[key] = p

        def ensure_role(key: str, name: str, keys) -> Role:
            role = s.query(Role).filter(Role.key == key).one_or_none()
            if not role:
                role = Role(key=key, name=name)
                s.add(role)
            for k in keys:
                if perms[k] not in role.permissions:
                    role.permissions.append(perms[k])
            return role

        ensure_role("user", "User", USER_PERMISSION_KEYS)
        role_admin = ensure_role("admin", "Administrator", perms.keys())

        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(
                email=admin_email,
                username="admin",
                password_hash=generate_password_hash(admin_password),
                is_active=True,
            )
            s.add(user)
        if role_admin not in user.roles:
            user.roles.append(role_admin)

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
