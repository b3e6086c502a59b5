#!/usr/bin/env python3
"""
Container entrypoint: run the release step, then hand the process over to gunicorn.

Usage:
    python scripts/start.py
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

logger = logging.getLogger("labelops.start")

DEFAULT_PORT = 8080


def parse_port(raw: str | None) -> int:
    if not (raw or "").strip():
        return DEFAULT_PORT
    port = int(raw)
    if not 1 <= port <= 65535:
        raise ValueError(f"PORT out of range: {port}")
    return port


def gunicorn_argv(port: int, workers: str) -> list[str]:
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", workers,
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        port = parse_port(os.environ.get("PORT"))
    except ValueError:
        logger.error("Invalid PORT value %r; expected an integer 1-65535", os.environ.get("PORT"))
        sys.exit(1)

    from scripts.release import run_release

    try:
        run_release()
    except Exception:
        logger.exception("Release failed; not starting the server")
        sys.exit(1)

    workers = (os.environ.get("WEB_CONCURRENCY") or "2").strip()
    logger.info("Starting gunicorn on port %s with %s workers", port, workers)
    # gunicorn replaces this process so it receives signals directly
    os.execvp("gunicorn", gunicorn_argv(port, workers))


if __name__ == "__main__":
    main()
