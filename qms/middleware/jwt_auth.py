"""
JWT Auth Middleware: reads the access token, sets g.jwt_user_id / g.identity.

The before_request hook never blocks: a missing or bad token leaves both
attributes as None. Endpoints that need an identity use the
``require_business_area_access`` decorator, which does the rejecting.

Token sources, in order:
  1. ``authToken`` cookie (name from AUTH_COOKIE_NAME)
  2. Authorization: Bearer <token>
"""

import functools
import logging

from flask import current_app, g, request

from qms.core.exceptions import AuthenticationError
from qms.services.access_service import (
    extract_token,
    identity_from_token,
    resolve_accessible_business_areas,
)

logger = logging.getLogger(__name__)

# Paths that skip JWT parsing entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/health",
)


def _cookie_name():
    return current_app.config.get("AUTH_COOKIE_NAME", "authToken")


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.identity = None
        g.business_areas = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        if path.startswith(JWT_SKIP_PREFIXES):
            return

        token = extract_token(request, _cookie_name())
        if token is None:
            return
        try:
            identity = identity_from_token(token)
        except AuthenticationError:
            # Non-blocking; the endpoint decides
            return
        g.identity = identity
        g.jwt_user_id = identity.user_id


def require_business_area_access(f):
    """
    Decorator: resolve the caller and the business areas they may access.

    Sets ``g.current_user`` (Identity) and ``g.business_areas`` (set[str]).
    Raises AuthenticationError (401) when there is no valid token or the
    caller holds no business area at all.
    """

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        identity = getattr(g, "identity", None)
        if identity is None:
            identity = identity_from_token(extract_token(request, _cookie_name()))

        areas = resolve_accessible_business_areas(identity.user_id)
        if not areas:
            logger.warning(
                "User %s has no accessible business areas", identity.user_id,
                extra={"user_id": identity.user_id},
            )
            raise AuthenticationError("Unauthorized - No business area access")

        g.current_user = identity
        g.jwt_user_id = identity.user_id
        g.business_areas = areas
        return f(*args, **kwargs)

    return decorated
