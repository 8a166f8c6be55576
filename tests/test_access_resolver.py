"""
Authentication / authorization resolver tests.

Tests cover:
  - Business-area resolution: primary area ∪ grants, missing user
  - Token extraction order and placeholder values
  - Token verification failures
  - Password hashing
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from werkzeug.security import generate_password_hash

from qms.core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError
from qms.models import db
from qms.models.auth import BusinessArea, User
from qms.services import access_service
from qms.services.access_service import (
    Identity,
    ensure_area_access,
    extract_token,
    identity_from_token,
    resolve_accessible_business_areas,
)
from qms.services.jwt_service import decode_access_token, generate_access_token
from qms.utils.crypto import hash_password, needs_rehash, verify_password

QUALITY = "Quality Management"
FINANCE = "Finance"
HR = "Human Resources"


class _Req:
    """Minimal stand-in for flask.Request in extraction tests."""

    def __init__(self, cookies=None, headers=None):
        self.cookies = cookies or {}
        self.headers = headers or {}


# ═══════════════════════════════════════════════════════════════
# BUSINESS-AREA RESOLUTION
# ═══════════════════════════════════════════════════════════════

def test_primary_area_only(quality_user):
    assert resolve_accessible_business_areas(quality_user.id) == {QUALITY}


def test_grants_are_unioned_with_primary(make_user):
    user = make_user(business_area=QUALITY, grants=[FINANCE, HR])
    assert resolve_accessible_business_areas(user.id) == {QUALITY, FINANCE, HR}


def test_grants_without_primary_area(make_user):
    user = make_user(business_area=None, grants=[FINANCE])
    assert resolve_accessible_business_areas(user.id) == {FINANCE}


def test_user_without_any_area_gets_empty_set(make_user):
    user = make_user(business_area=None)
    assert resolve_accessible_business_areas(user.id) == set()


def test_unknown_user_gets_empty_set(areas):
    assert resolve_accessible_business_areas(424242) == set()


def test_deleted_user_gets_empty_set(make_user):
    user = make_user(grants=[FINANCE])
    user_id = user.id
    db.session.delete(user)
    db.session.commit()
    assert resolve_accessible_business_areas(user_id) == set()


def test_ensure_area_access():
    ensure_area_access(QUALITY, {QUALITY, FINANCE})
    with pytest.raises(AuthorizationError) as exc_info:
        ensure_area_access(HR, {QUALITY})
    assert exc_info.value.business_area == HR


# ═══════════════════════════════════════════════════════════════
# TOKEN EXTRACTION
# ═══════════════════════════════════════════════════════════════

def test_cookie_wins_over_bearer():
    req = _Req(cookies={"authToken": "cookie-token"}, headers={"Authorization": "Bearer header-token"})
    assert extract_token(req) == "cookie-token"


def test_bearer_used_without_cookie():
    req = _Req(headers={"Authorization": "Bearer header-token"})
    assert extract_token(req) == "header-token"


@pytest.mark.parametrize("value", ["null", "undefined", "   ", ""])
def test_placeholder_tokens_are_absent(value):
    assert extract_token(_Req(cookies={"authToken": value})) is None
    assert extract_token(_Req(headers={"Authorization": f"Bearer {value}"})) is None


def test_non_bearer_scheme_ignored():
    assert extract_token(_Req(headers={"Authorization": "Basic dXNlcjpwYXNz"})) is None


# ═══════════════════════════════════════════════════════════════
# TOKEN VERIFICATION
# ═══════════════════════════════════════════════════════════════

def test_token_roundtrip_carries_identity(quality_user):
    identity = identity_from_token(generate_access_token(quality_user))
    assert identity == Identity(
        user_id=quality_user.id,
        email="quality@example.com",
        username=quality_user.username,
        business_area=QUALITY,
    )
    claims = decode_access_token(generate_access_token(quality_user))
    assert claims["sub"] == str(quality_user.id)
    assert claims["type"] == "access"
    assert claims["jti"]


def test_missing_token_rejected():
    with pytest.raises(AuthenticationError, match="No token provided"):
        identity_from_token(None)


def test_expired_token_rejected(app, quality_user):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "sub": str(quality_user.id), "userId": quality_user.id, "type": "access",
            "iat": now - timedelta(hours=9), "exp": now - timedelta(hours=1),
        },
        app.config["JWT_SECRET_KEY"],
        algorithm="HS256",
    )
    with pytest.raises(AuthenticationError, match="expired"):
        identity_from_token(token)


def test_wrong_signature_rejected(quality_user):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "1", "userId": 1, "type": "access", "iat": now, "exp": now + timedelta(hours=1)},
        "not-the-secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthenticationError, match="Invalid token"):
        identity_from_token(token)


def test_non_access_token_rejected(app):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "1", "userId": 1, "type": "refresh", "iat": now, "exp": now + timedelta(hours=1)},
        app.config["JWT_SECRET_KEY"],
        algorithm="HS256",
    )
    with pytest.raises(AuthenticationError):
        identity_from_token(token)


def test_garbage_token_rejected():
    with pytest.raises(AuthenticationError):
        identity_from_token("not.a.jwt")


# ═══════════════════════════════════════════════════════════════
# CREDENTIALS & GRANTS
# ═══════════════════════════════════════════════════════════════

def test_authenticate_user_normalizes_email(quality_user):
    user = access_service.authenticate_user("  Quality@Example.com ", "Passw0rd!")
    assert user.id == quality_user.id


def test_authenticate_user_rejects_bad_credentials(quality_user):
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        access_service.authenticate_user("quality@example.com", "wrong")
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        access_service.authenticate_user("nobody@example.com", "Passw0rd!")


def test_password_hashing():
    hashed = hash_password("s3cret!")
    assert hashed.startswith("$2b$")
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret!", "")


def test_legacy_werkzeug_hash_accepted():
    legacy = generate_password_hash("old-pass")
    assert verify_password("old-pass", legacy)
    assert not verify_password("nope", legacy)


def test_grant_business_area(make_user, quality_user):
    target = make_user("target@example.com", business_area=FINANCE)

    access_service.grant_business_area(target.id, QUALITY, {QUALITY})
    db.session.commit()
    assert resolve_accessible_business_areas(target.id) == {FINANCE, QUALITY}

    with pytest.raises(ConflictError):
        access_service.grant_business_area(target.id, QUALITY, {QUALITY})
    with pytest.raises(AuthorizationError):
        access_service.grant_business_area(target.id, HR, {QUALITY})
    with pytest.raises(NotFoundError):
        access_service.grant_business_area(99999, QUALITY, {QUALITY})


def test_seed_business_areas_is_idempotent(areas):
    added = access_service.seed_business_areas([QUALITY, "Compliance", "Compliance"])
    db.session.commit()
    assert added == 1
    assert access_service.seed_business_areas([QUALITY, "Compliance"]) == 0
    assert BusinessArea.query.count() == 4


def test_create_user_hashes_password_and_grants(areas):
    user = access_service.create_user(
        "auditor", " Auditor@Example.com ", "pw-123456", business_area=QUALITY, granted_areas=[HR, HR],
    )
    db.session.commit()

    stored = db.session.get(User, user.id)
    assert stored.email == "auditor@example.com"
    assert verify_password("pw-123456", stored.password_hash)
    assert resolve_accessible_business_areas(user.id) == {QUALITY, HR}

    with pytest.raises(ConflictError):
        access_service.create_user("again", "auditor@example.com", "x")
    with pytest.raises(NotFoundError):
        access_service.create_user("nobody", "n@example.com", "x", business_area="Atlantis")


def test_legacy_hash_upgraded_on_login(make_user):
    user = make_user("legacy@example.com")
    user.password_hash = generate_password_hash("old-pass")
    db.session.commit()

    access_service.authenticate_user("legacy@example.com", "old-pass")
    db.session.commit()

    assert db.session.get(User, user.id).password_hash.startswith("$2b$")
    assert not needs_rehash(db.session.get(User, user.id).password_hash)


def test_cli_seeds_areas_and_creates_user(app, areas):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["seed-business-areas", "Compliance"])
    assert result.exit_code == 0, result.output
    assert "Seeded 1 new" in result.output

    result = runner.invoke(args=[
        "create-user", "--username", "cli", "--email", "cli@example.com",
        "--password", "pw-123456", "--business-area", "Compliance", "--grant", FINANCE,
    ])
    assert result.exit_code == 0, result.output
    user = User.query.filter_by(email="cli@example.com").one()
    assert resolve_accessible_business_areas(user.id) == {"Compliance", FINANCE}
