"""
Business area endpoints.

  GET  /api/v1/business-areas         every business area
  POST /api/v1/business-areas/grants  grant a user one of the caller's areas
"""

from flask import Blueprint, g, jsonify, request

from qms.blueprints import register_error_handlers
from qms.core.exceptions import ValidationError
from qms.middleware.jwt_auth import require_business_area_access
from qms.services import access_service
from qms.utils.helpers import db_commit_or_error, parse_int_id

business_area_bp = Blueprint("business_areas", __name__, url_prefix="/api/v1/business-areas")
register_error_handlers(business_area_bp)


@business_area_bp.route("", methods=["GET"])
@require_business_area_access
def list_business_areas():
    areas = access_service.list_business_areas()
    return jsonify({"items": [a.to_dict() for a in areas], "total": len(areas)}), 200


@business_area_bp.route("/grants", methods=["POST"])
@require_business_area_access
def create_grant():
    """Body: { "user_id": <int>, "business_area": "..." }"""
    data = request.get_json(silent=True) or {}
    try:
        user_id = parse_int_id(data.get("user_id"))
    except ValueError:
        raise ValidationError("user_id must be a positive integer", details={"user_id": "invalid"})
    business_area = str(data.get("business_area") or "").strip()
    if not business_area:
        raise ValidationError("business_area is required", details={"business_area": "required"})

    grant = access_service.grant_business_area(user_id, business_area, g.business_areas)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(grant.to_dict()), 201
