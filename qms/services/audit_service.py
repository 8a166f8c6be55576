"""Audit trail recorder and deleted-records view.

``record_deletion`` appends one AuditEntry and flushes; the caller owns the
transaction. There is no update or delete path for audit rows.
"""
import logging

from qms.models import db
from qms.models.audit import AuditEntry
from qms.models.auth import User

logger = logging.getLogger(__name__)


def record_deletion(
    table_name,
    record_id,
    deleted_at,
    deleted_by,
    business_area=None,
    file_name=None,
    file_url=None,
    file_cleanup_success=True,
) -> AuditEntry:
    """
    Append a single DELETE audit row.  Uses ``flush`` so callers keep
    transaction control.

    Returns the (flushed) AuditEntry instance.
    """
    entry = AuditEntry(
        table_name=table_name,
        record_id=record_id,
        action="DELETE",
        deleted_at=deleted_at,
        deleted_by=deleted_by,
        business_area=business_area,
        file_name=file_name,
        file_url=file_url,
        file_cleanup_success=bool(file_cleanup_success),
    )
    db.session.add(entry)
    db.session.flush()

    logger.info(
        "AUDIT DELETE %s/%s by user %s",
        table_name, record_id, deleted_by,
        extra={
            "table_name": table_name,
            "record_id": record_id,
            "user_id": deleted_by,
            "business_area": business_area,
            "file_cleanup_success": bool(file_cleanup_success),
        },
    )
    return entry


def list_audit_entries(business_areas, table_name=None):
    """Audit rows for the caller's areas, newest first."""
    query = AuditEntry.query.filter(AuditEntry.business_area.in_(sorted(business_areas)))
    if table_name:
        query = query.filter(AuditEntry.table_name == table_name)
    return query.order_by(AuditEntry.deleted_at.desc(), AuditEntry.id.desc()).all()


def list_deleted_records(business_areas, registry=None):
    """Every soft-deleted record across all kinds in the caller's areas.

    Each item carries the record's fields plus ``tableName``, ``kind`` and the
    deleting user's ``deletedByUsername`` / ``deletedByEmail``. Newest first.
    """
    if registry is None:
        from qms.services.record_registry import REGISTRY as registry

    items = []
    for adapter in registry:
        model = adapter.model
        rows = (
            db.session.query(model, User.username, User.email)
            .outerjoin(User, User.id == model.deleted_by)
            .filter(model.deleted_at.isnot(None))
            .filter(model.in_areas(business_areas))
            .all()
        )
        for record, username, email in rows:
            item = record.to_dict()
            item.update({
                "tableName": adapter.table_name,
                "kind": adapter.kind.value,
                "deletedByUsername": username,
                "deletedByEmail": email,
            })
            items.append((record.deleted_at, item))

    items.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in items]
