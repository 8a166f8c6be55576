"""
Auth Models: business areas, users, user ↔ business-area grants.

A user's effective access set is the union of the primary ``business_area``
column on ``users`` and every row in ``user_business_areas`` for that user.
"""

from datetime import datetime, timezone

from qms.models import db


# ═══════════════════════════════════════════════════════════════
# 1. BUSINESS AREAS
# ═══════════════════════════════════════════════════════════════
class BusinessArea(db.Model):
    __tablename__ = "businessareas"

    id = db.Column(db.Integer, primary_key=True)
    business_area = db.Column(db.String(100), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "business_area": self.business_area,
        }

    def __repr__(self):
        return f"<BusinessArea {self.business_area}>"


# ═══════════════════════════════════════════════════════════════
# 2. USERS
# ═══════════════════════════════════════════════════════════════
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    business_area = db.Column(
        db.String(100),
        db.ForeignKey("businessareas.business_area", ondelete="SET NULL"),
        nullable=True,
        comment="Primary business area",
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    grants = db.relationship(
        "UserBusinessArea",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "business_area": self.business_area,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"


# ═══════════════════════════════════════════════════════════════
# 3. USER ↔ BUSINESS AREA GRANTS
# ═══════════════════════════════════════════════════════════════
class UserBusinessArea(db.Model):
    __tablename__ = "user_business_areas"
    __table_args__ = (
        db.UniqueConstraint("user_id", "business_area", name="uq_user_business_area"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    business_area = db.Column(
        db.String(100),
        db.ForeignKey("businessareas.business_area", ondelete="CASCADE"),
        nullable=False,
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship("User", back_populates="grants")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "business_area": self.business_area,
        }
