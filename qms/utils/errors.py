"""JSON error bodies for the record-keeping API.

Every error response is ``{"error": <message>, "code": <ERR_...>}`` with an
optional ``details`` object (field errors, retry hints).

    return api_error(E.NOT_FOUND, "Record not found")
    return api_error(E.VALIDATION_INVALID, "Invalid value", details={"likelihood": "1-5"})
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Machine-readable error codes."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    FORBIDDEN = "ERR_FORBIDDEN"
    NOT_FOUND = "ERR_NOT_FOUND"
    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    PAYLOAD_TOO_LARGE = "ERR_PAYLOAD_TOO_LARGE"
    RATE_LIMITED = "ERR_RATE_LIMITED"
    INTERNAL = "ERR_INTERNAL"


STATUS_FOR_CODE: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHENTICATED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.METHOD_NOT_ALLOWED: 405,
    E.CONFLICT_DUPLICATE: 409,
    E.PAYLOAD_TOO_LARGE: 413,
    E.RATE_LIMITED: 429,
    E.INTERNAL: 500,
}

_CODE_FOR_STATUS: dict[int, str] = {
    400: E.VALIDATION_INVALID,
    401: E.UNAUTHENTICATED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    405: E.METHOD_NOT_ALLOWED,
    409: E.CONFLICT_DUPLICATE,
    413: E.PAYLOAD_TOO_LARGE,
    429: E.RATE_LIMITED,
}


def code_for_status(status: int) -> str:
    """Error code for a bare HTTP status (werkzeug HTTPException, abort())."""
    if status >= 500:
        return E.INTERNAL
    return _CODE_FOR_STATUS.get(status, E.VALIDATION_INVALID)


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """``(jsonify(body), status)``; status defaults from the code, then 400."""
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or STATUS_FOR_CODE.get(code, 400)
