"""Record CRUD blueprint, shared by every registered record kind.

Each kind is served under its registry slug (``risk-management``,
``training-sessions`` …):

  GET  /api/v1/<resource>                   list active records (?business_area=)
  POST /api/v1/<resource>                   create → 201
  GET  /api/v1/<resource>/<id>              get one
  PUT  /api/v1/<resource>/<id>              partial update, may bump the file version
  POST /api/v1/<resource>/soft-delete       body {"id": <int>}
  POST /api/v1/<resource>/<id>/file         multipart upload (field "file")
  GET  /api/v1/<resource>/<id>/versions     superseded files, newest first

Services flush; this layer commits. Soft delete commits inside the engine.
"""

import logging

from flask import Blueprint, g, jsonify, request

from qms.blueprints import register_error_handlers
from qms.core.exceptions import NotFoundError, ValidationError
from qms.middleware.jwt_auth import require_business_area_access
from qms.services import file_versioning, record_service, soft_delete_service
from qms.services.blob_storage import get_blob_storage
from qms.services.record_registry import REGISTRY
from qms.utils.helpers import db_commit_or_error, parse_int_id

logger = logging.getLogger(__name__)

records_bp = Blueprint("records", __name__, url_prefix="/api/v1")
register_error_handlers(records_bp)


def _adapter(resource):
    adapter = REGISTRY.by_slug(resource)
    if adapter is None:
        raise NotFoundError(resource="Resource", resource_id=resource)
    return adapter


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# ═════════════════════════════════════════════════════════════════════════
# Collection
# ═════════════════════════════════════════════════════════════════════════


@records_bp.route("/<resource>", methods=["GET"])
@require_business_area_access
def list_records(resource):
    adapter = _adapter(resource)
    business_area = request.args.get("business_area") or None
    records = record_service.list_records(adapter, g.business_areas, business_area)
    return jsonify({"items": [r.to_dict() for r in records], "total": len(records)}), 200


@records_bp.route("/<resource>", methods=["POST"])
@require_business_area_access
def create_record(resource):
    adapter = _adapter(resource)
    record = record_service.create_record(
        adapter, _json_body(), g.current_user.user_id, g.business_areas,
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(record.to_dict()), 201


@records_bp.route("/<resource>/soft-delete", methods=["POST"])
@require_business_area_access
def soft_delete_record(resource):
    """Body: { "id": <int> }. 404 when missing, out of scope or already deleted."""
    adapter = _adapter(resource)
    try:
        record_id = parse_int_id(_json_body().get("id"))
    except ValueError:
        raise ValidationError("Valid record ID is required", details={"id": "invalid"})

    result = soft_delete_service.soft_delete(
        adapter,
        record_id,
        caller_id=g.current_user.user_id,
        business_areas=g.business_areas,
        blob_storage=get_blob_storage(),
    )
    return jsonify(result.to_dict()), 200


# ═════════════════════════════════════════════════════════════════════════
# Single record
# ═════════════════════════════════════════════════════════════════════════


@records_bp.route("/<resource>/<int:record_id>", methods=["GET"])
@require_business_area_access
def get_record(resource, record_id):
    adapter = _adapter(resource)
    record = record_service.get_record(adapter, record_id, g.business_areas)
    return jsonify(record.to_dict()), 200


@records_bp.route("/<resource>/<int:record_id>", methods=["PUT"])
@require_business_area_access
def update_record(resource, record_id):
    adapter = _adapter(resource)
    record = record_service.update_record(
        adapter, record_id, _json_body(), g.current_user.user_id, g.business_areas,
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(record.to_dict()), 200


@records_bp.route("/<resource>/<int:record_id>/file", methods=["POST"])
@require_business_area_access
def upload_file(resource, record_id):
    adapter = _adapter(resource)
    record = record_service.attach_file(
        adapter,
        record_id,
        request.files.get("file"),
        caller_id=g.current_user.user_id,
        business_areas=g.business_areas,
        blob_storage=get_blob_storage(),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(record.to_dict()), 200


@records_bp.route("/<resource>/<int:record_id>/versions", methods=["GET"])
@require_business_area_access
def list_versions(resource, record_id):
    adapter = _adapter(resource)
    versions = file_versioning.list_versions(adapter, record_id, g.business_areas)
    return jsonify({"items": [v.to_dict() for v in versions], "total": len(versions)}), 200
