"""File version tracker.

Before a record's attached file is replaced, the outgoing file is copied into
the kind's ``*_file_versions`` table and the record gets a bumped label.

Version labels:
    "1.3"  → "1.4"
    "2"    → "3.0"
    ""     → "1.0"
    "beta" → "beta.1"
"""
import logging
import re

from qms.core.exceptions import NotFoundError
from qms.models import db
from qms.utils.helpers import is_storable_id

logger = logging.getLogger(__name__)

_MAJOR_MINOR = re.compile(r"^(\d+)\.(\d+)$")
_MAJOR = re.compile(r"^(\d+)$")

INITIAL_VERSION = "1.0"


def increment_version(label) -> str:
    """Return the label that follows ``label``."""
    if not label:
        return INITIAL_VERSION
    match = _MAJOR_MINOR.match(label)
    if match:
        return f"{match.group(1)}.{int(match.group(2)) + 1}"
    match = _MAJOR.match(label)
    if match:
        return f"{int(match.group(1)) + 1}.0"
    return f"{label}.1"


def maybe_snapshot_and_bump(adapter, record, new_file_url, caller_id) -> str:
    """Snapshot the outgoing file when ``new_file_url`` replaces it.

    Returns the label the record should carry after the change. No row is
    written, and the current label comes back unchanged, when there is no new
    url, the url is the same, or the record has no current file/label. A
    record with no label at all gets "1.0" once a file arrives.

    Flushes; caller owns the transaction.
    """
    current = record.current_file
    if not new_file_url or new_file_url == current.url:
        return current.version
    if not current.url or not current.version:
        return current.version or INITIAL_VERSION

    snapshot = adapter.version_model(
        record_id=record.id,
        version_label=current.version,
        file_url=current.url,
        file_name=current.name or "",
        file_size=current.size,
        file_type=current.type,
        uploaded_by=caller_id,
    )
    db.session.add(snapshot)
    db.session.flush()

    new_label = increment_version(current.version)
    logger.info(
        "Snapshotted %s/%s v%s → v%s",
        adapter.table_name, record.id, current.version, new_label,
        extra={"table_name": adapter.table_name, "record_id": record.id, "user_id": caller_id},
    )
    return new_label


def list_versions(adapter, record_id, business_areas):
    """Superseded files of one active, in-scope record, newest first."""
    if not is_storable_id(record_id):
        raise NotFoundError(resource=adapter.label, resource_id=record_id)
    record = (
        adapter.model.query_active()
        .filter(adapter.model.id == record_id)
        .filter(adapter.model.in_areas(business_areas))
        .first()
    )
    if record is None:
        raise NotFoundError(resource=adapter.label, resource_id=record_id)
    version_model = adapter.version_model
    return (
        version_model.query.filter_by(record_id=record.id)
        .order_by(version_model.created_at.desc(), version_model.id.desc())
        .all()
    )
