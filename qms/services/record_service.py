"""Generic CRUD over every registered record kind.

Transaction policy: functions here flush, never commit. The blueprint commits
via ``db_commit_or_error`` once the whole request has succeeded. The one
exception is soft delete, which owns its transaction (see
``qms.services.soft_delete_service``).

Scoping:
    - reads and updates only see active rows inside the caller's areas;
      anything else is NotFoundError
    - naming a business area the caller does not hold on create, on move or
      in a list filter is AuthorizationError
"""
import logging
import math

from qms.core.exceptions import NotFoundError, ValidationError
from qms.models import db
from qms.models.records import RiskMatrixEntry
from qms.services.access_service import business_area_exists, ensure_area_access
from qms.services.file_versioning import INITIAL_VERSION, maybe_snapshot_and_bump
from qms.services.record_registry import FILE_FIELDS
from qms.utils.helpers import MAX_DB_BIGINT, MAX_DB_INTEGER, is_storable_id, parse_date_input

logger = logging.getLogger(__name__)

_RANGES = {
    "likelihood": (1, 5),
    "impact": (1, 5),
    "status_percentage": (0, 100),
}

_TRUE = {"true", "1", "yes", "y", "on"}
_FALSE = {"false", "0", "no", "n", "off", ""}


# ── Payload coercion ─────────────────────────────────────────────────────


def _to_int(value):
    """int() that refuses to drop a fractional part (2.9 stays an error)."""
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{value!r} is not a whole number")
    return int(value)


def _coerce(adapter, key, value):
    if key in adapter.date_fields:
        try:
            return parse_date_input(value)
        except ValueError as exc:
            raise ValidationError(f"{key}: {exc}", details={key: "invalid date"}) from exc

    if key in adapter.bool_fields:
        if value is None or isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValidationError(f"{key} must be a boolean", details={key: "invalid boolean"})

    if key in adapter.int_fields or key in adapter.float_fields:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number", details={key: "invalid number"})
        try:
            number = float(value) if key in adapter.float_fields else _to_int(value)
        except (TypeError, ValueError, OverflowError):
            raise ValidationError(f"{key} must be a number", details={key: "invalid number"})
        if isinstance(number, float) and not math.isfinite(number):
            raise ValidationError(f"{key} must be a number", details={key: "invalid number"})
        if key in adapter.int_fields:
            limit = MAX_DB_BIGINT if key in adapter.bigint_fields else MAX_DB_INTEGER
            if abs(number) > limit:
                raise ValidationError(f"{key} is too large", details={key: "out of range"})
        bounds = _RANGES.get(key)
        if bounds and not bounds[0] <= number <= bounds[1]:
            raise ValidationError(
                f"{key} must be between {bounds[0]} and {bounds[1]}",
                details={key: "out of range"},
            )
        return number

    if value is None:
        return None
    return str(value)


def _clean_fields(adapter, data):
    """Coerced ``{column: value}`` for the editable keys present in ``data``."""
    return {
        key: _coerce(adapter, key, data[key])
        for key in adapter.editable_fields
        if key in data
    }


def _check_required(adapter, values, partial=False):
    missing = []
    for name in adapter.required_fields:
        if partial and name not in values:
            continue
        value = values.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={name: "required" for name in missing},
        )


def _check_target_area(business_area, business_areas):
    if not business_area or not str(business_area).strip():
        raise ValidationError("business_area is required", details={"business_area": "required"})
    business_area = str(business_area).strip()
    if not business_area_exists(business_area):
        raise ValidationError(
            f"Unknown business area {business_area!r}", details={"business_area": "unknown"},
        )
    ensure_area_access(business_area, business_areas)
    return business_area


def _refresh_computed(record):
    if isinstance(record, RiskMatrixEntry):
        record.recalculate_score()


# ── Reads ────────────────────────────────────────────────────────────────


def get_record(adapter, record_id, business_areas):
    """Active record ``record_id`` inside the caller's areas, else NotFoundError."""
    model = adapter.model
    if not is_storable_id(record_id):
        raise NotFoundError(resource=adapter.label, resource_id=record_id)
    record = (
        model.query_active()
        .filter(model.id == record_id)
        .filter(model.in_areas(business_areas))
        .first()
    )
    if record is None:
        raise NotFoundError(resource=adapter.label, resource_id=record_id)
    return record


def list_records(adapter, business_areas, business_area=None):
    """Active records in the caller's areas, optionally narrowed to one area."""
    model = adapter.model
    if business_area:
        ensure_area_access(business_area, business_areas)
        areas = {business_area}
    else:
        areas = business_areas
    return (
        model.query_active()
        .filter(model.in_areas(areas))
        .order_by(model.id.desc())
        .all()
    )


# ── Writes ───────────────────────────────────────────────────────────────


def create_record(adapter, data, caller_id, business_areas):
    """Create a record of ``adapter``'s kind from a JSON payload. Flushes."""
    business_area = _check_target_area(data.get("business_area"), business_areas)
    values = _clean_fields(adapter, data)
    _check_required(adapter, values)

    record = adapter.model(business_area=business_area, **values)
    if record.file_url:
        record.version = INITIAL_VERSION
    _refresh_computed(record)

    db.session.add(record)
    db.session.flush()
    logger.info(
        "Created %s/%s", adapter.table_name, record.id,
        extra={"table_name": adapter.table_name, "record_id": record.id,
               "user_id": caller_id, "business_area": business_area},
    )
    return record


def update_record(adapter, record_id, data, caller_id, business_areas):
    """Apply a partial update. A changed ``file_url`` snapshots the old file."""
    record = get_record(adapter, record_id, business_areas)

    if "business_area" in data and data["business_area"] != record.business_area:
        record.business_area = _check_target_area(data["business_area"], business_areas)

    values = _clean_fields(adapter, data)
    _check_required(adapter, values, partial=True)

    if "file_url" in values:
        if values["file_url"] != record.file_url:
            # metadata of the outgoing file must not leak onto the new one
            for key in FILE_FIELDS[1:]:
                values.setdefault(key, None)
        record.version = maybe_snapshot_and_bump(adapter, record, values["file_url"], caller_id)

    for key, value in values.items():
        setattr(record, key, value)
    _refresh_computed(record)

    db.session.flush()
    logger.info(
        "Updated %s/%s", adapter.table_name, record.id,
        extra={"table_name": adapter.table_name, "record_id": record.id, "user_id": caller_id},
    )
    return record


def attach_file(adapter, record_id, upload, caller_id, business_areas, blob_storage):
    """Store an uploaded file and point the record at it.

    ``upload`` is a werkzeug FileStorage. The previous file, if any, is kept
    in the version history rather than removed from storage.
    """
    record = get_record(adapter, record_id, business_areas)
    if upload is None or not upload.filename:
        raise ValidationError("file is required", details={"file": "required"})

    stored = blob_storage.upload_file(
        upload.read(),
        file_name=upload.filename,
        content_type=upload.mimetype,
        business_area=record.business_area,
        document_type=adapter.document_type,
        record_id=record.id,
    )
    record.version = maybe_snapshot_and_bump(adapter, record, stored.url, caller_id)
    record.attach(stored.url, stored.file_name, stored.file_size, stored.file_type)

    db.session.flush()
    logger.info(
        "Attached %s to %s/%s (v%s)", stored.key, adapter.table_name, record.id, record.version,
        extra={"table_name": adapter.table_name, "record_id": record.id,
               "user_id": caller_id, "version": record.version},
    )
    return record
