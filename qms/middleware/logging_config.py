"""
Logging setup for the record-keeping API.

Two output shapes share one handler on the root logger:

- ``JSONFormatter`` (production) emits one JSON object per line.
- ``ReadableFormatter`` (development, testing) emits a colored single line
  with the record coordinates appended when present.

``RequestContextFilter`` stamps every record emitted inside a request with
the request id, the caller and the caller's business areas, so the audit
and soft-delete lines can be correlated without passing them around.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Attributes lifted from the LogRecord into the JSON payload
CONTEXT_FIELDS = (
    "request_id",
    "user_id",
    "business_areas",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
)
RECORD_FIELDS = (
    "table_name",
    "record_id",
    "business_area",
    "version",
    "file_cleanup_success",
)

_NOISY_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "botocore", "boto3", "s3transfer")


class RequestContextFilter(logging.Filter):
    """Attach request id / caller / areas from ``flask.g`` when available."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            return True
        if getattr(record, "request_id", None) is None:
            record.request_id = g.get("request_id")
        if getattr(record, "user_id", None) is None:
            record.user_id = g.get("jwt_user_id")
        if getattr(record, "business_areas", None) is None:
            areas = g.get("business_areas")
            record.business_areas = sorted(areas) if areas else None
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in CONTEXT_FIELDS + RECORD_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}{clock} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        coords = [
            f"{key}={getattr(record, key)}"
            for key in ("request_id",) + RECORD_FIELDS
            if getattr(record, key, None) is not None
        ]
        if coords:
            line += "  [" + " ".join(coords) + "]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """
    Install the root handler for ``app``.

    Level comes from ``LOG_LEVEL`` (default INFO in production, DEBUG
    otherwise). JSON output is used only when neither DEBUG nor TESTING
    is set.
    """
    testing = app.config.get("TESTING", False)
    production = not app.config.get("DEBUG", False) and not testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if production else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if production else ReadableFormatter())
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    # Replace rather than append so repeated create_app() calls stay single-handler
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging configured (level=%s, json=%s)", level_name, production)
