"""
Release step: bring the LabelOps schema to head, then seed roles and the admin account.

Usage:
  python scripts/release.py
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.labelops.config import load_settings  # noqa: E402

logger = logging.getLogger("labelops.release")


def release_database_url() -> str:
    """DATABASE_URL as the app resolves it, refusing SQLite for production releases."""
    settings = load_settings()
    if settings.env in ("prod", "production") and settings.database_url.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
    return settings.database_url


def upgrade_schema(db_url: str) -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")


def run_release() -> None:
    db_url = release_database_url()
    logger.info("Upgrading LabelOps schema to head")
    upgrade_schema(db_url)

    from scripts import init_db

    logger.info("Seeding permissions, roles and admin user")
    init_db.seed_only(database_url=db_url)
    logger.info("Release complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_release()
