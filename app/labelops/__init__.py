import logging
from datetime import timedelta

from flask import Flask, g, request, session
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.labelops.config import load_config
from app.labelops.db import init_db, teardown_db_session
from app.labelops.errors import ApiError, Forbidden, ValidationError
from app.labelops.routes import bp as routes_bp
from app.labelops.auth import bp as auth_bp, load_current_user
from app.labelops.admin import bp as admin_bp
from app.labelops.modules.vendors.api import bp as vendors_bp
from app.labelops.modules.collections.api import bp as collections_bp
from app.labelops.modules.vendor_products.api import bp as vendor_products_bp
from app.labelops.modules.vendor_hardware.api import bp as vendor_hardware_bp
from app.labelops.modules.orders.api import config_bp, header_bp, list_bp, notes_bp
from app.labelops.modules.order_items.api import bp as order_items_bp
from app.labelops.modules.order_charges.api import bp as order_charges_bp
from app.labelops.modules.order_transactions.api import bp as order_transactions_bp
from app.labelops.modules.inventory.api import bp as inventory_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.logger.setLevel(app.config.get("LOG_LEVEL") or "INFO")
    # Keep the field order the serializers build.
    app.json.sort_keys = False

    from app.labelops.security import ensure_csrf_token, validate_csrf

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # login/logout run before a token has been handed out
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                raise ValidationError("CSRF token missing or invalid.")
        return None

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os

        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(vendors_bp, url_prefix="/api/vendor")
    app.register_blueprint(collections_bp, url_prefix="/api/collection")
    app.register_blueprint(vendor_products_bp, url_prefix="/api/vendor-product")
    app.register_blueprint(vendor_hardware_bp, url_prefix="/api/vendor-hardware")
    app.register_blueprint(header_bp, url_prefix="/api/order-header")
    app.register_blueprint(list_bp, url_prefix="/api/order-list")
    app.register_blueprint(config_bp, url_prefix="/api/order-config")
    app.register_blueprint(notes_bp, url_prefix="/api/order-notes")
    app.register_blueprint(order_items_bp, url_prefix="/api/order-items")
    app.register_blueprint(order_charges_bp, url_prefix="/api/order-charges")
    app.register_blueprint(order_transactions_bp, url_prefix="/api/order-transactions")
    app.register_blueprint(inventory_bp, url_prefix="/api/order-inventory")

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):  # type: ignore[no-redef]
        if isinstance(e, Forbidden):
            missing = getattr(g, "missing_permission", None)
            if missing:
                app.logger.warning("Forbidden: missing_permission=%s request_id=%s", missing, getattr(g, "request_id", None))
        return e.to_dict(), e.status_code

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return {"error": "NotFound", "message": "Route not found"}, 404

    @app.errorhandler(405)
    def _err_405(e):  # type: ignore[no-redef]
        return {"error": "MethodNotAllowed", "message": "Method not allowed"}, 405

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        return {"error": e.name.replace(" ", ""), "message": e.description}, e.code

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        rid = getattr(g, "request_id", None)
        original = getattr(e, "original_exception", None) or e
        app.logger.error("Unhandled 500 (request_id=%s)", rid, exc_info=original)
        return {"error": "InternalError", "message": "Unexpected server error", "errorId": rid}, 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
