"""
Auth Blueprint: JWT authentication endpoints.

  POST /api/v1/auth/login           Email + password → access token (+ cookie)
  POST /api/v1/auth/logout          Clear the auth cookie
  GET  /api/v1/auth/me              Current identity
  GET  /api/v1/auth/business-areas  Business areas the caller may access
"""

import logging

from flask import Blueprint, current_app, g, jsonify, request

from qms.blueprints import register_error_handlers
from qms.middleware.jwt_auth import require_business_area_access
from qms.services.access_service import Identity, authenticate_user
from qms.services.jwt_service import generate_access_token
from qms.utils.errors import E, api_error
from qms.utils.helpers import db_commit_or_error

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")
register_error_handlers(auth_bp)


def _set_auth_cookie(response, token):
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        max_age=current_app.config["JWT_ACCESS_EXPIRES"],
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite="Lax",
        path="/",
    )


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with email + password.

    Body: { "email": "...", "password": "..." }
    Returns the token in the body and in the HttpOnly auth cookie.
    """
    data = request.get_json(silent=True) or {}
    email = str(data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not email or not password:
        return api_error(E.VALIDATION_REQUIRED, "Email and password are required")

    user = authenticate_user(email, password)
    err = db_commit_or_error()
    if err:
        return err
    token = generate_access_token(user)
    logger.info("User %s logged in", user.id, extra={"user_id": user.id})

    response = jsonify({
        "token": token,
        "expires_in": current_app.config["JWT_ACCESS_EXPIRES"],
        "user": user.to_dict(),
    })
    _set_auth_cookie(response, token)
    return response, 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/logout
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/logout", methods=["POST"])
def logout():
    response = jsonify({"message": "Logged out"})
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"], path="/")
    return response, 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@require_business_area_access
def me():
    identity: Identity = g.current_user
    return jsonify({
        "user": identity.to_dict(),
        "businessAreas": sorted(g.business_areas),
    }), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/business-areas
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/business-areas", methods=["GET"])
@require_business_area_access
def my_business_areas():
    return jsonify({"businessAreas": sorted(g.business_areas)}), 200
