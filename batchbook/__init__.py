"""BatchBook application factory and bootstrap."""

from __future__ import annotations

import os
import traceback
from pathlib import Path
from typing import Optional

from flask import Flask

from batchbook.config import config_by_name
from batchbook.core.events.event_bus import event_bus
from batchbook.extensions import init_extensions, jwt


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the BatchBook Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(__name__, instance_path=str(instance_root), instance_relative_config=True)
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///"):
        db_path = Path(db_uri.replace("sqlite:///", "", 1))
        if not db_path.is_absolute():
            db_path = project_root / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}"

    init_extensions(app)
    _register_models()
    _register_blueprints(app)
    _register_error_handlers(app)
    _register_auth_handlers(app)
    _register_realtime(app)

    app.extensions["event_bus"] = event_bus

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    from batchbook.scripts.commands import register_commands

    register_commands(app)

    app.logger.info("BatchBook started with %s config", env_name)
    return app


def _register_models() -> None:
    """Import models so metadata (create_all, autogenerate) sees every table."""
    from batchbook.core.auth import models as auth_models  # noqa: F401
    from batchbook.core.users import models as user_models  # noqa: F401
    from batchbook.domains.journal import models as journal_models  # noqa: F401
    from batchbook.platform.outbox import models as outbox_models  # noqa: F401


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from batchbook.core.auth.controllers import auth_bp  # local import to avoid circulars
    from batchbook.core.users.controllers import user_api_bp
    from batchbook.domains.journal.controllers.entry_api import entry_api_bp
    from batchbook.domains.journal.controllers.export_api import export_api_bp
    from batchbook.domains.journal.controllers.version_api import version_api_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(user_api_bp, url_prefix="/api/users")
    app.register_blueprint(entry_api_bp, url_prefix="/api/entries")
    app.register_blueprint(version_api_bp, url_prefix="/api/entries")
    app.register_blueprint(export_api_bp, url_prefix="/api/exports")


def _register_error_handlers(app: Flask) -> None:
    """JSON error responses."""
    from werkzeug.exceptions import HTTPException

    from batchbook.core.errors import BatchbookError, Forbidden, NotFound

    @app.errorhandler(BatchbookError)
    def _domain_error(exc: BatchbookError):
        # Someone else's resource is reported exactly like a missing one.
        if isinstance(exc, Forbidden):
            exc = NotFound("Resource not found.")
        if exc.status >= 500:
            app.logger.error("Domain error %s: %s", exc.code, exc.message)
        return {"ok": False, "error": exc.code, "message": exc.message}, exc.status

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        body = {"ok": False, "error": "unexpected_error", "message": "An unexpected error occurred."}
        if (app.config.get("ENV") or "").lower() != "production":
            body["trace"] = traceback.format_exc()
        return body, 500


def _register_auth_handlers(app: Flask) -> None:
    """JWT callbacks: user loading, blocklist and a uniform 401 body."""
    from batchbook.core.auth.auth_service import is_token_revoked
    from batchbook.core.users.models import User
    from batchbook.extensions import db

    def _unauthorized(*_args):
        return {"ok": False, "error": "unauthorized"}, 401

    @jwt.user_lookup_loader
    def _load_user(_jwt_header, jwt_data):
        identity = jwt_data.get("sub")
        return db.session.get(User, int(identity)) if identity else None

    @jwt.token_in_blocklist_loader
    def _is_revoked(_jwt_header, jwt_payload):
        return is_token_revoked(jwt_payload.get("jti"))

    jwt.unauthorized_loader(_unauthorized)
    jwt.invalid_token_loader(_unauthorized)
    jwt.expired_token_loader(_unauthorized)
    jwt.revoked_token_loader(_unauthorized)
    jwt.user_lookup_error_loader(_unauthorized)


def _register_realtime(app: Flask) -> None:
    from batchbook.realtime import gateway, room_notifier

    gateway.reset()
    gateway.register()
    room_notifier.subscribe()
    app.extensions["realtime_gateway"] = gateway
