"""
QMS Record Keeping Platform
Blueprint registry and shared error handlers.
"""

import logging

from flask import request
from werkzeug.exceptions import HTTPException

from qms.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from qms.utils.errors import E, api_error, code_for_status

logger = logging.getLogger(__name__)


def register_error_handlers(bp):
    """Map the core exception hierarchy to JSON responses for ``bp``."""

    @bp.errorhandler(AuthenticationError)
    def _handle_unauthenticated(error):
        return api_error(E.UNAUTHENTICATED, str(error))

    @bp.errorhandler(AuthorizationError)
    def _handle_forbidden(error):
        logger.info("Forbidden business area %r on %s", error.business_area, request.endpoint,
                    extra={"business_area": error.business_area})
        return api_error(E.FORBIDDEN, str(error))

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error):
        return api_error(E.NOT_FOUND, f"{error.resource} not found")

    @bp.errorhandler(ValidationError)
    def _handle_validation(error):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error):
        return api_error(E.CONFLICT_DUPLICATE, str(error))

    @bp.errorhandler(HTTPException)
    def _handle_http(error):
        return api_error(code_for_status(error.code), error.description or error.name, status=error.code)

    @bp.errorhandler(Exception)
    def _handle_unexpected(error):
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")

    return bp
