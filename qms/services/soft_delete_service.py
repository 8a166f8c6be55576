"""Soft-delete engine.

One call marks an in-scope, active record deleted, attempts to remove its
attached blob, and appends exactly one audit row. The lookup, the update and
the audit write share a single transaction: the engine commits on success and
rolls back on any error.

Blob cleanup is best effort. A False return or an exception from the storage
backend is logged and reported in ``file_cleanup_success``; it never fails
the delete.
"""
import logging
from dataclasses import dataclass

from qms.core.exceptions import NotFoundError
from qms.models import db
from qms.models.audit import AuditEntry
from qms.services import audit_service
from qms.utils.helpers import is_storable_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoftDeleteResult:
    record: object
    file_cleanup_success: bool
    audit_entry: AuditEntry

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": "Record deleted successfully",
            "deletedAt": self.record.deleted_at.isoformat(),
            "deletedBy": self.record.deleted_by,
            "fileCleanupSuccess": self.file_cleanup_success,
            "auditEntry": self.audit_entry.to_dict(),
        }


def _cleanup_file(blob_storage, record, table_name) -> bool:
    url = record.file_url
    if not url:
        return True
    try:
        ok = bool(blob_storage.delete_file(url))
    except Exception:
        logger.exception(
            "Blob cleanup raised for %s/%s", table_name, record.id,
            extra={"table_name": table_name, "record_id": record.id},
        )
        return False
    if not ok:
        logger.warning(
            "Blob cleanup failed for %s/%s (%s)", table_name, record.id, url,
            extra={"table_name": table_name, "record_id": record.id},
        )
    return ok


def soft_delete(adapter, record_id, caller_id, business_areas, blob_storage) -> SoftDeleteResult:
    """Soft delete ``record_id`` of ``adapter``'s kind on behalf of ``caller_id``.

    Raises:
        NotFoundError: the record does not exist, is outside ``business_areas``
            or is already deleted. The three cases are indistinguishable.
    """
    model = adapter.model
    if not is_storable_id(record_id):
        raise NotFoundError(resource=adapter.label, resource_id=record_id)
    removed_url = None
    try:
        record = (
            model.query_active()
            .filter(model.id == record_id)
            .filter(model.in_areas(business_areas))
            .first()
        )
        if record is None:
            raise NotFoundError(resource=adapter.label, resource_id=record_id)

        record.soft_delete(caller_id)
        db.session.flush()

        cleaned = _cleanup_file(blob_storage, record, adapter.table_name)
        if cleaned and record.file_url:
            removed_url = record.file_url
        entry = audit_service.record_deletion(
            table_name=adapter.table_name,
            record_id=record.id,
            deleted_at=record.deleted_at,
            deleted_by=caller_id,
            business_area=record.business_area,
            file_name=record.file_name,
            file_url=record.file_url,
            file_cleanup_success=cleaned,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        if removed_url:
            # Blob deletes are not transactional
            logger.error(
                "Soft delete of %s/%s rolled back after its file was removed; orphaned url %s",
                adapter.table_name, record_id, removed_url,
                extra={"table_name": adapter.table_name, "record_id": record_id},
            )
        raise

    return SoftDeleteResult(record=record, file_cleanup_success=cleaned, audit_entry=entry)
