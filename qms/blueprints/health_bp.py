"""
Health probes.

    GET /api/v1/health/ready   process is up
    GET /api/v1/health/live    database round-trip and blob backend probe

A database failure makes ``/live`` return 503. A blob storage failure only
marks the check as degraded: records stay readable and deletes still
succeed with ``fileCleanupSuccess: false``.
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from qms.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


def _timed(probe):
    started = time.perf_counter()
    ok, detail = probe()
    return ok, detail, round((time.perf_counter() - started) * 1000, 1)


def _probe_database():
    try:
        db.session.execute(db.text("SELECT 1"))
    except Exception as exc:
        db.session.rollback()
        logger.error("Health check: database unreachable: %s", exc)
        return False, str(exc)
    return True, db.engine.dialect.name


def _probe_blob_storage():
    storage = current_app.extensions.get("blob_storage")
    if storage is None:
        return False, "not configured"
    ok, detail = storage.check()
    if not ok:
        logger.warning("Health check: blob storage degraded: %s", detail)
    return ok, detail


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    checks = {}
    for name, probe in (("database", _probe_database), ("blob_storage", _probe_blob_storage)):
        ok, detail, latency_ms = _timed(probe)
        checks[name] = {"status": "ok" if ok else "error", "detail": detail, "latency_ms": latency_ms}
    checks["blob_storage"]["backend"] = current_app.config.get("BLOB_STORAGE_BACKEND")

    database_ok = checks["database"]["status"] == "ok"
    if not database_ok:
        status = "down"
    elif checks["blob_storage"]["status"] != "ok":
        status = "degraded"
    else:
        status = "ok"
    return jsonify({"status": status, "checks": checks}), 200 if database_ok else 503
