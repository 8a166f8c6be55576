"""
QMS Record Keeping Platform
Flask Application Factory.

Usage:
    from qms import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from qms.cli import register_cli
from qms.config import config
from qms.models import db
from qms.middleware.logging_config import configure_logging
from qms.middleware.timing import init_request_timing
from qms.middleware.security_headers import init_security_headers
from qms.middleware.rate_limiter import init_rate_limits
from qms.middleware.jwt_auth import init_jwt_middleware
from qms.services.blob_storage import create_blob_storage
from qms.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # per-blueprint limits only
    storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiate so ProductionConfig can refuse missing secrets
    app.config.from_object(config[config_name]())
    app.config["MAX_CONTENT_LENGTH"] = app.config["MAX_UPLOAD_BYTES"]

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(
            app,
            origins=[o.strip() for o in cors_origins.split(",") if o.strip()],
            supports_credentials=True,
        )
    else:
        CORS(app)

    # ── Blob storage (built once, shared by every request) ───────────────
    app.extensions["blob_storage"] = create_blob_storage(app.config)

    # ── Security headers ─────────────────────────────────────────────────
    init_security_headers(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── JWT auth middleware (sets g.identity when a token is present) ────
    init_jwt_middleware(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from qms.models import auth as _auth_models          # noqa: F401
    from qms.models import records as _record_models     # noqa: F401
    from qms.models import audit as _audit_models        # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        try:
            db.create_all()
            app.logger.info("db.create_all() completed successfully")
        except Exception as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from qms.blueprints.auth_bp import auth_bp
    from qms.blueprints.business_area_bp import business_area_bp
    from qms.blueprints.audit_bp import audit_bp
    from qms.blueprints.health_bp import health_bp
    from qms.blueprints.records_bp import records_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(business_area_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(health_bp)
    # Last: its /<resource> rules are the catch-all under /api/v1
    app.register_blueprint(records_bp)

    register_cli(app)
    _register_app_error_handlers(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app


def _register_app_error_handlers(app):
    """JSON bodies for errors raised outside any blueprint (unrouted paths, body limit)."""

    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(413)
    def payload_too_large(e):
        limit = app.config["MAX_CONTENT_LENGTH"]
        return api_error(E.PAYLOAD_TOO_LARGE, "Upload exceeds the size limit", details={"max_bytes": limit})

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests", details={"retry_after": e.description})

    @app.errorhandler(500)
    def server_error(e):
        logger.error("Unhandled server error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")
