"""
Auth API tests.

Tests cover:
  - POST /api/v1/auth/login, cookie issuance, bad credentials
  - POST /api/v1/auth/logout
  - GET  /api/v1/auth/me and /api/v1/auth/business-areas via bearer or cookie
  - GET  /api/v1/business-areas, POST /api/v1/business-areas/grants
  - Health probes
"""

import logging

from flask import g

from qms.middleware.logging_config import RequestContextFilter
from qms.models import db
from qms.models.auth import UserBusinessArea

QUALITY = "Quality Management"
FINANCE = "Finance"
HR = "Human Resources"


# ═══════════════════════════════════════════════════════════════
# LOGIN / LOGOUT
# ═══════════════════════════════════════════════════════════════

def _login(client, email="quality@example.com", password="Passw0rd!"):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def test_login_returns_token_and_sets_cookie(client, quality_user):
    res = _login(client)
    assert res.status_code == 200
    data = res.get_json()
    assert data["token"]
    assert data["user"]["email"] == "quality@example.com"
    assert "password_hash" not in data["user"]

    cookie = res.headers.get("Set-Cookie", "")
    assert cookie.startswith("authToken=")
    assert "HttpOnly" in cookie


def test_login_email_is_case_insensitive(client, quality_user):
    assert _login(client, email="QUALITY@example.com").status_code == 200


def test_login_wrong_password(client, quality_user):
    res = _login(client, password="wrong")
    assert res.status_code == 401
    body = res.get_json()
    assert body["error"] == "Invalid email or password"
    assert body["code"] == "ERR_UNAUTHENTICATED"


def test_login_unknown_email(client, quality_user):
    assert _login(client, email="ghost@example.com").status_code == 401


def test_login_missing_fields(client):
    res = client.post("/api/v1/auth/login", json={"email": "quality@example.com"})
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"


def test_logout_clears_cookie(client, quality_user):
    _login(client)
    res = client.post("/api/v1/auth/logout")
    assert res.status_code == 200
    assert "authToken=;" in res.headers.get("Set-Cookie", "")


# ═══════════════════════════════════════════════════════════════
# IDENTITY
# ═══════════════════════════════════════════════════════════════

def test_me_with_bearer(client, quality_user, auth_headers):
    res = client.get("/api/v1/auth/me", headers=auth_headers(quality_user))
    assert res.status_code == 200
    data = res.get_json()
    assert data["user"]["userId"] == quality_user.id
    assert data["businessAreas"] == [QUALITY]


def test_me_with_cookie_from_login(client, quality_user):
    _login(client)
    res = client.get("/api/v1/auth/me")
    assert res.status_code == 200
    assert res.get_json()["user"]["email"] == "quality@example.com"


def test_me_without_token(client, areas):
    res = client.get("/api/v1/auth/me")
    assert res.status_code == 401
    assert "No token provided" in res.get_json()["error"]


def test_me_with_placeholder_token(client, areas):
    res = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer undefined"})
    assert res.status_code == 401


def test_me_with_bad_token(client, areas):
    res = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer abc.def.ghi"})
    assert res.status_code == 401
    assert "Invalid token" in res.get_json()["error"]


def test_user_without_areas_is_unauthenticated(client, make_user, auth_headers):
    user = make_user("nobody@example.com", business_area=None)
    res = client.get("/api/v1/auth/me", headers=auth_headers(user))
    assert res.status_code == 401


def test_my_business_areas_include_grants(client, make_user, auth_headers):
    user = make_user(business_area=QUALITY, grants=[FINANCE])
    res = client.get("/api/v1/auth/business-areas", headers=auth_headers(user))
    assert res.status_code == 200
    assert res.get_json()["businessAreas"] == [FINANCE, QUALITY]


# ═══════════════════════════════════════════════════════════════
# BUSINESS AREAS & GRANTS
# ═══════════════════════════════════════════════════════════════

def test_list_all_business_areas(client, quality_user, auth_headers):
    res = client.get("/api/v1/business-areas", headers=auth_headers(quality_user))
    assert res.status_code == 200
    names = [a["business_area"] for a in res.get_json()["items"]]
    assert names == sorted([QUALITY, FINANCE, HR])


def test_grant_area_held_by_caller(client, quality_user, finance_user, auth_headers):
    res = client.post(
        "/api/v1/business-areas/grants",
        json={"user_id": finance_user.id, "business_area": QUALITY},
        headers=auth_headers(quality_user),
    )
    assert res.status_code == 201
    db.session.expire_all()
    assert UserBusinessArea.query.filter_by(user_id=finance_user.id).count() == 1


def test_grant_area_not_held_by_caller(client, quality_user, finance_user, auth_headers):
    res = client.post(
        "/api/v1/business-areas/grants",
        json={"user_id": finance_user.id, "business_area": HR},
        headers=auth_headers(quality_user),
    )
    assert res.status_code == 403
    assert res.get_json()["code"] == "ERR_FORBIDDEN"


def test_duplicate_grant_conflicts(client, quality_user, finance_user, auth_headers):
    payload = {"user_id": finance_user.id, "business_area": QUALITY}
    headers = auth_headers(quality_user)
    assert client.post("/api/v1/business-areas/grants", json=payload, headers=headers).status_code == 201
    res = client.post("/api/v1/business-areas/grants", json=payload, headers=headers)
    assert res.status_code == 409


def test_grant_validation(client, quality_user, auth_headers):
    res = client.post(
        "/api/v1/business-areas/grants",
        json={"user_id": "7", "business_area": QUALITY},
        headers=auth_headers(quality_user),
    )
    assert res.status_code == 400


# ═══════════════════════════════════════════════════════════════
# HEALTH
# ═══════════════════════════════════════════════════════════════

def test_health_probes(client):
    assert client.get("/api/v1/health/ready").status_code == 200
    res = client.get("/api/v1/health/live")
    assert res.status_code == 200
    data = res.get_json()
    assert data["status"] == "ok"
    assert data["checks"]["database"]["status"] == "ok"
    assert data["checks"]["blob_storage"]["status"] == "ok"


def test_health_reports_degraded_blob_storage(client, app, monkeypatch):
    storage = app.extensions["blob_storage"]
    monkeypatch.setattr(storage, "check", lambda: (False, "bucket unreachable"))
    res = client.get("/api/v1/health/live")
    assert res.status_code == 200
    data = res.get_json()
    assert data["status"] == "degraded"
    assert data["checks"]["blob_storage"]["detail"] == "bucket unreachable"


def test_responses_carry_request_headers(client):
    res = client.get("/api/v1/health/ready")
    assert res.headers.get("X-Request-ID")
    assert res.headers.get("X-Request-Duration-Ms")


def test_client_request_id_is_echoed(client):
    res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "trace-42"})
    assert res.headers["X-Request-ID"] == "trace-42"

    res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "x" * 65})
    assert res.headers["X-Request-ID"] != "x" * 65
    assert len(res.headers["X-Request-ID"]) == 12


def test_log_records_pick_up_request_context(app):
    record = logging.LogRecord("qms.test", logging.INFO, __file__, 1, "hello", None, None)
    with app.test_request_context("/api/v1/risk-management"):
        g.request_id = "trace-42"
        g.jwt_user_id = 7
        g.business_areas = {HR, QUALITY}
        assert RequestContextFilter().filter(record) is True
        for name in ("request_id", "jwt_user_id", "business_areas"):
            g.pop(name)

    assert record.request_id == "trace-42"
    assert record.user_id == 7
    assert record.business_areas == [HR, QUALITY]
