"""
Shared pytest fixtures for the QMS Record Keeping test suite.

Provides:
    - app: Flask application (session-scoped), blob storage on a temp dir
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - areas: the three business areas most tests use
    - make_user / auth_headers: users and bearer headers for API calls
"""

import pytest

from qms import create_app
from qms.models import db as _db
from qms.models.auth import BusinessArea, User, UserBusinessArea
from qms.services.blob_storage import LocalBlobStorage
from qms.services.jwt_service import generate_access_token
from qms.utils.crypto import hash_password

TEST_PASSWORD = "Passw0rd!"

# bcrypt at 12 rounds is slow; hash once per session
_PASSWORD_HASH = hash_password(TEST_PASSWORD)

QUALITY = "Quality Management"
FINANCE = "Finance"
HR = "Human Resources"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app(tmp_path_factory):
    """Create the Flask application once per test session."""
    application = create_app("testing")
    application.extensions["blob_storage"] = LocalBlobStorage(tmp_path_factory.mktemp("blobs"))
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def blob_storage(app):
    return app.extensions["blob_storage"]


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def areas():
    """Seed Quality Management, Finance and Human Resources."""
    for name in (QUALITY, FINANCE, HR):
        _db.session.add(BusinessArea(business_area=name))
    _db.session.commit()
    return {"quality": QUALITY, "finance": FINANCE, "hr": HR}


@pytest.fixture()
def make_user(areas):
    """Factory: make_user("a@x.com", business_area=..., grants=[...]) → User."""
    counter = {"n": 0}

    def _make(email=None, business_area=QUALITY, grants=()):
        counter["n"] += 1
        user = User(
            username=f"user{counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password_hash=_PASSWORD_HASH,
            business_area=business_area,
        )
        _db.session.add(user)
        _db.session.flush()
        for area in grants:
            _db.session.add(UserBusinessArea(user_id=user.id, business_area=area))
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def auth_headers():
    """Factory: auth_headers(user) → {"Authorization": "Bearer ..."}."""

    def _headers(user):
        return {"Authorization": f"Bearer {generate_access_token(user)}"}

    return _headers


@pytest.fixture()
def quality_user(make_user):
    return make_user("quality@example.com", business_area=QUALITY)


@pytest.fixture()
def finance_user(make_user):
    return make_user("finance@example.com", business_area=FINANCE)
