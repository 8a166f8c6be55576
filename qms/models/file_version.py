"""
Attached-file columns and per-entity file version history.

Models:
    - FileAttachmentMixin: file_url / file_name / file_size / file_type / version
      columns carried by every QMS record.
    - FileVersionBase: abstract base for the parallel ``*_file_versions``
      tables. Each concrete subclass names its parent record table via
      ``__record_table__``; the structure is otherwise identical.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import declared_attr

from qms.models import db


@dataclass(frozen=True)
class FileRef:
    """Snapshot of the file currently attached to a record."""

    url: str | None
    name: str | None = None
    size: int | None = None
    type: str | None = None
    version: str | None = None


class FileAttachmentMixin:
    """Mixin for records that carry one attached file."""

    file_url = db.Column(db.String(1000), nullable=True)
    file_name = db.Column(db.String(255), nullable=True)
    file_size = db.Column(db.BigInteger, nullable=True)
    file_type = db.Column(db.String(100), nullable=True)
    version = db.Column(db.String(20), nullable=True, comment='Version label, e.g. "1.0"')

    @property
    def current_file(self) -> FileRef:
        return FileRef(
            url=self.file_url,
            name=self.file_name,
            size=self.file_size,
            type=self.file_type,
            version=self.version,
        )

    def attach(self, url, name=None, size=None, file_type=None):
        self.file_url = url
        self.file_name = name
        self.file_size = size
        self.file_type = file_type


class FileVersionBase(db.Model):
    """Abstract base for a superseded-file snapshot table."""
    __abstract__ = True
    __record_table__ = None

    id = db.Column(db.Integer, primary_key=True)

    @declared_attr
    def record_id(cls):
        if cls.__record_table__ is None:
            return None
        return db.Column(
            db.Integer,
            db.ForeignKey(f"{cls.__record_table__}.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    version_label = db.Column(db.String(20), nullable=False)
    file_url = db.Column(db.String(1000), nullable=False)
    file_name = db.Column(db.String(255), nullable=False, default="")
    file_size = db.Column(db.BigInteger, nullable=True)
    file_type = db.Column(db.String(100), nullable=True)

    @declared_attr
    def uploaded_by(cls):
        return db.Column(
            db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        )

    created_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "record_id": self.record_id,
            "version_label": self.version_label,
            "file_url": self.file_url,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "file_type": self.file_type,
            "uploaded_by": self.uploaded_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<{type(self).__name__} record={self.record_id} v{self.version_label}>"
