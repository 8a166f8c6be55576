"""
Audit endpoints: read-only views over deletion history.

  GET /api/v1/audit                   audit entries in the caller's areas (?table_name=)
  GET /api/v1/audit/deleted-records   soft-deleted records across all kinds
"""

from flask import Blueprint, g, jsonify, request

from qms.blueprints import register_error_handlers
from qms.middleware.jwt_auth import require_business_area_access
from qms.services import audit_service

audit_bp = Blueprint("audit", __name__, url_prefix="/api/v1/audit")
register_error_handlers(audit_bp)


@audit_bp.route("", methods=["GET"])
@require_business_area_access
def list_audit_entries():
    entries = audit_service.list_audit_entries(
        g.business_areas, table_name=request.args.get("table_name") or None,
    )
    return jsonify({"items": [e.to_dict() for e in entries], "total": len(entries)}), 200


@audit_bp.route("/deleted-records", methods=["GET"])
@require_business_area_access
def deleted_records():
    records = audit_service.list_deleted_records(g.business_areas)
    return jsonify({"items": records, "total": len(records)}), 200
