"""
BusinessAreaModel: Abstract base class for business-area-scoped records.

Every QMS record table inherits from BusinessAreaModel instead of db.Model
directly. This adds:
  - business_area FK column (→ businessareas.business_area) with index
  - created_at / updated_at timestamps
  - in_areas(business_areas) filter clause
  - column-driven to_dict()
"""

from datetime import date, datetime, timezone

from sqlalchemy.orm import declared_attr

from qms.models import db


def _serialize(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class BusinessAreaModel(db.Model):
    """Abstract base for business-area-scoped tables."""
    __abstract__ = True

    @declared_attr
    def business_area(cls):
        return db.Column(
            db.String(100),
            db.ForeignKey("businessareas.business_area"),
            nullable=False,
            index=True,
        )

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @classmethod
    def in_areas(cls, business_areas):
        """Filter clause restricting rows to ``business_areas``."""
        return cls.business_area.in_(sorted(business_areas))

    def to_dict(self) -> dict:
        return {
            col.name: _serialize(getattr(self, col.key))
            for col in self.__table__.columns
        }

    def __repr__(self):
        return f"<{type(self).__name__} {self.id} ({self.business_area})>"
