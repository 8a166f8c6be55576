"""
Soft Delete Mixin

Adds `deleted_at` / `deleted_by` columns and query helpers for soft delete.
Models that include this mixin are marked as deleted rather than physically
removed. The two columns are set together or not at all; a table-level CHECK
constraint holds the pair consistent.

Usage:
    class MyModel(SoftDeleteMixin, BusinessAreaModel):
        __tablename__ = "my_models"
        __table_args__ = (SoftDeleteMixin.deletion_pair_check("my_models"),)

    # Soft delete
    obj.soft_delete(user_id)
    db.session.commit()

    # Query only active records
    MyModel.query_active().all()

    # Only deleted
    MyModel.query_deleted().all()
"""

from datetime import datetime, timezone

from sqlalchemy.orm import declared_attr

from qms.models import db


class SoftDeleteMixin:
    """Mixin that adds soft delete support to any SQLAlchemy model."""

    deleted_at = db.Column(db.DateTime, nullable=True, default=None, index=True)

    @declared_attr
    def deleted_by(cls):
        return db.Column(
            db.Integer,
            db.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            default=None,
        )

    @staticmethod
    def deletion_pair_check(table_name):
        """CHECK: deleted_at and deleted_by are both NULL or both set."""
        return db.CheckConstraint(
            "(deleted_at IS NULL AND deleted_by IS NULL) OR "
            "(deleted_at IS NOT NULL AND deleted_by IS NOT NULL)",
            name=f"ck_{table_name}_deletion_pair",
        )

    def soft_delete(self, user_id):
        """Mark this record as deleted by ``user_id``."""
        if user_id is None:
            raise ValueError("soft_delete requires the id of the deleting user")
        self.deleted_at = datetime.now(timezone.utc)
        self.deleted_by = user_id

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @classmethod
    def query_active(cls):
        """Return a query that excludes soft-deleted records."""
        return cls.query.filter(cls.deleted_at.is_(None))

    @classmethod
    def query_deleted(cls):
        """Return only soft-deleted records."""
        return cls.query.filter(cls.deleted_at.isnot(None))
