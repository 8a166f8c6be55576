"""
QMS Record Keeping Platform
Audit domain model.

Models:
    - AuditEntry: immutable, append-only trail of soft deletes, including the
      outcome of the attached-file cleanup.
"""

from datetime import datetime, timezone

from qms.models import db

# ── Constants ────────────────────────────────────────────────────────────────

AUDIT_ACTIONS = {"DELETE"}


class AuditEntry(db.Model):
    """
    Immutable audit row for every soft delete.

    One row per deletion. ``file_cleanup_success`` records whether the
    attached blob was removed; a failed cleanup never blocks the delete.
    """

    __tablename__ = "audit_entries"
    __table_args__ = (
        db.Index("idx_audit_record", "table_name", "record_id"),
        db.Index("idx_audit_business_area", "business_area"),
        db.Index("idx_audit_deleted_at", "deleted_at"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # Polymorphic record reference
    table_name = db.Column(
        db.String(80), nullable=False,
        comment="business_processes | risk_matrix_entries | …",
    )
    record_id = db.Column(db.Integer, nullable=False)
    action = db.Column(db.String(20), nullable=False, default="DELETE")

    # Who / when
    deleted_at = db.Column(db.DateTime, nullable=False)
    deleted_by = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    business_area = db.Column(db.String(100), nullable=True)

    # Side effects
    file_name = db.Column(db.String(255), nullable=True)
    file_url = db.Column(db.String(1000), nullable=True)
    file_cleanup_success = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tableName": self.table_name,
            "recordId": self.record_id,
            "action": self.action,
            "deletedAt": self.deleted_at.isoformat() if self.deleted_at else None,
            "deletedBy": self.deleted_by,
            "businessArea": self.business_area,
            "fileName": self.file_name,
            "fileUrl": self.file_url,
            "fileCleanupSuccess": self.file_cleanup_success,
        }

    def __repr__(self):
        return f"<AuditEntry {self.id}: {self.action} {self.table_name}/{self.record_id}>"
