"""
Platform-wide exception hierarchy.

Services, the soft-delete engine and the file version tracker raise these
types; blueprints register handlers against them once (see
``qms.blueprints.register_error_handlers``) and get consistent HTTP status
codes everywhere. Nothing below the blueprint layer builds a response.

Usage:
    from qms.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="RiskMatrixEntry", resource_id=42)
    raise ValidationError("process_name is required", details={"process_name": "required"})
"""


class AuthenticationError(Exception):
    """Raised when no valid identity can be established for the request.

    Covers a missing, malformed or expired token, and an identity whose
    accessible business-area set is empty. Maps to HTTP 401.
    """

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class AuthorizationError(Exception):
    """Raised when a valid identity targets a business area it does not hold.

    Maps to HTTP 403. Used for writes that name a business area explicitly
    (create, move, grant). Reads and soft deletes of records outside the
    caller's scope raise NotFoundError instead.

    Args:
        business_area: The area the caller tried to act on. Logged, not returned.
    """

    def __init__(self, message: str = "Forbidden", business_area: str | None = None) -> None:
        self.business_area = business_area
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when a requested record does not exist within the caller's scope.

    Security note: Used for BOTH genuinely missing records AND records in a
    business area the caller cannot access, AND records already soft-deleted.
    A 403 would confirm the record exists; a 404 does not.

    Args:
        resource: Human-readable model/entity name (e.g. "TrainingSession").
        resource_id: The PK that was looked up.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a request payload is missing fields or malformed.

    Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique row. Maps to HTTP 409."""

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class UnknownEntityKindError(LookupError):
    """Raised when a record kind has no registered adapter.

    A configuration error: the registry refuses to build when a kind is
    missing, and lookups of unregistered kinds fail loudly instead of
    skipping the file-version snapshot.
    """

    def __init__(self, kind) -> None:
        self.kind = kind
        super().__init__(f"No record adapter registered for entity kind {kind!r}")
