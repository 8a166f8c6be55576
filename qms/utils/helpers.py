"""Shared payload coercion and commit helpers.

parse_date_input:    ISO / DD.MM.YYYY → date, raising ValueError on bad input
parse_int_id:        JSON id field → positive int, raising ValueError otherwise
is_storable_id:      whether an id fits the Integer primary-key column
db_commit_or_error:  commit with a uniform JSON error on failure
"""
import logging
from datetime import date, datetime

from qms.models import db
from qms.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# PostgreSQL INTEGER / BIGINT ranges; SQLite stores a superset
MAX_DB_INTEGER = 2**31 - 1
MAX_DB_BIGINT = 2**63 - 1


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Supports: YYYY-MM-DD, YYYY-MM-DDTHH:MM:SS, DD.MM.YYYY, date objects.
    Empty input returns None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = str(value)
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(value, "%d.%m.%Y").date()
    except ValueError as exc:
        raise ValueError(
            "Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY."
        ) from exc


def parse_int_id(value):
    """Return ``value`` as a positive int id.

    Booleans and numeric strings are rejected: the soft-delete body carries
    ``{"id": <number>}`` and nothing else is accepted.
    """
    if isinstance(value, bool) or not isinstance(value, int) or not is_storable_id(value):
        raise ValueError(f"id must be an integer between 1 and {MAX_DB_INTEGER}")
    return value


def is_storable_id(value):
    return 0 < value <= MAX_DB_INTEGER


def db_commit_or_error():
    """Commit the current SQLAlchemy session, returning an error response on failure.

    Returns:
        None on success.
        (response, status_code) tuple on failure, ready for ``return``.

    IntegrityError → 409 (duplicate / constraint violation)
    Other → 500 (unexpected)
    """
    from sqlalchemy.exc import IntegrityError

    try:
        db.session.commit()
        return None
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        return api_error(E.CONFLICT_DUPLICATE, "Duplicate or constraint violation")
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected database error on commit")
        return api_error(E.INTERNAL, "Database error")
