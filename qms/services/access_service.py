"""Authentication / authorization resolver.

Turns an inbound request into an identity and resolves the set of business
areas that identity may access. Blueprints never read tokens or grant rows
directly; they go through the ``require_business_area_access`` decorator,
which calls into this module.
"""
import logging
from dataclasses import dataclass

import jwt
from sqlalchemy import select

from qms.core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError
from qms.models import db
from qms.models.auth import BusinessArea, User, UserBusinessArea
from qms.services.jwt_service import decode_access_token
from qms.utils.crypto import hash_password, needs_rehash, verify_password

logger = logging.getLogger(__name__)

_PLACEHOLDER_TOKENS = frozenset({"null", "undefined"})


@dataclass(frozen=True)
class Identity:
    """Claims carried by a verified access token."""

    user_id: int
    email: str
    username: str = ""
    business_area: str = ""

    @classmethod
    def from_claims(cls, claims: dict) -> "Identity":
        return cls(
            user_id=claims["userId"],
            email=claims.get("email", ""),
            username=claims.get("username", ""),
            business_area=claims.get("businessArea") or "",
        )

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "email": self.email,
            "username": self.username,
            "businessArea": self.business_area,
        }


# ── Token → identity ─────────────────────────────────────────────────────


def extract_token(request, cookie_name="authToken"):
    """Return the raw token from the auth cookie or the Bearer header, else None."""
    token = request.cookies.get(cookie_name)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    if not token or not token.strip() or token.strip() in _PLACEHOLDER_TOKENS:
        return None
    return token.strip()


def identity_from_token(token):
    """Verify ``token`` and return its Identity.

    Raises:
        AuthenticationError: token missing, malformed, badly signed or expired.
    """
    if not token:
        raise AuthenticationError("Unauthorized - No token provided")
    try:
        claims = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Unauthorized - Token expired")
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected access token: %s", exc)
        raise AuthenticationError("Unauthorized - Invalid token")
    return Identity.from_claims(claims)


# ── Business-area resolution ─────────────────────────────────────────────


def resolve_accessible_business_areas(user_id) -> set[str]:
    """Union of the user's primary business area and every granted area.

    Returns an empty set when the user row no longer exists. Callers treat
    an empty set as "no access" and reject the request.
    """
    user = db.session.get(User, user_id)
    if user is None:
        logger.warning("Access resolution for unknown user_id=%s", user_id)
        return set()

    areas = set(
        db.session.execute(
            select(UserBusinessArea.business_area).where(UserBusinessArea.user_id == user_id)
        ).scalars()
    )
    if user.business_area:
        areas.add(user.business_area)
    return areas


def ensure_area_access(business_area, business_areas):
    """Raise AuthorizationError unless ``business_area`` is in the caller's set."""
    if business_area not in business_areas:
        raise AuthorizationError(
            "Forbidden - No access to this business area", business_area=business_area,
        )


# ── Credentials ──────────────────────────────────────────────────────────


def authenticate_user(email, password):
    """Return the User for valid credentials.

    Raises:
        AuthenticationError: unknown email or wrong password (indistinguishable).
    """
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if user is None or not user.password_hash or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        logger.info("Upgraded legacy password hash", extra={"user_id": user.id})
    return user


# ── Grants ───────────────────────────────────────────────────────────────


def grant_business_area(user_id, business_area, business_areas):
    """Grant ``business_area`` to ``user_id``. The caller must hold that area.

    Flushes; caller owns the transaction.
    """
    ensure_area_access(business_area, business_areas)
    if db.session.get(User, user_id) is None:
        raise NotFoundError(resource="User", resource_id=user_id)
    exists = UserBusinessArea.query.filter_by(
        user_id=user_id, business_area=business_area,
    ).first()
    if exists:
        raise ConflictError("UserBusinessArea", "business_area", business_area)

    grant = UserBusinessArea(user_id=user_id, business_area=business_area)
    db.session.add(grant)
    db.session.flush()
    logger.info("Granted business area %s to user %s", business_area, user_id,
                extra={"user_id": user_id, "business_area": business_area})
    return grant


def list_business_areas():
    return BusinessArea.query.order_by(BusinessArea.business_area).all()


def business_area_exists(name) -> bool:
    return BusinessArea.query.filter_by(business_area=name).first() is not None


# ── Bootstrap ────────────────────────────────────────────────────────────

DEFAULT_BUSINESS_AREAS = (
    "Administration",
    "Compliance",
    "Dental Management",
    "Facility Management",
    "Finance",
    "Human Resources",
    "IT Management",
    "Laboratory Management",
    "Medical Management",
    "Nursing Management",
    "Patient Services",
    "Pharmacy Management",
    "Quality Management",
    "Radiology Management",
    "Risk Management",
)


def seed_business_areas(names=DEFAULT_BUSINESS_AREAS) -> int:
    """Insert any missing business areas. Returns the number added. Flushes."""
    existing = set(db.session.execute(select(BusinessArea.business_area)).scalars())
    added = 0
    for name in names:
        name = name.strip()
        if name and name not in existing:
            db.session.add(BusinessArea(business_area=name))
            existing.add(name)
            added += 1
    db.session.flush()
    return added


def create_user(username, email, password, business_area=None, granted_areas=()):
    """Create a user with a bcrypt password hash and optional extra grants. Flushes."""
    email = (email or "").strip().lower()
    if User.query.filter_by(email=email).first() is not None:
        raise ConflictError("User", "email", email)
    for area in (business_area, *granted_areas):
        if area and not business_area_exists(area):
            raise NotFoundError(resource="BusinessArea", resource_id=area)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        business_area=business_area,
    )
    db.session.add(user)
    db.session.flush()
    for area in dict.fromkeys(granted_areas):
        if area != business_area:
            db.session.add(UserBusinessArea(user_id=user.id, business_area=area))
    db.session.flush()
    logger.info("Created user %s", user.id, extra={"user_id": user.id, "business_area": business_area})
    return user
