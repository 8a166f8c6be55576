"""
Request id and duration.

Every response carries ``X-Request-ID`` (echoed from the client when sent)
and ``X-Request-Duration-Ms``. The id lives on ``g.request_id`` where
``RequestContextFilter`` picks it up, together with the caller, so the
access line below and every audit / soft-delete line of the same request
share it.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

PROBE_PATHS = frozenset({"/api/v1/health/ready", "/api/v1/health/live"})
SLOW_REQUEST_MS = 1000
_MAX_REQUEST_ID_LEN = 64


def _incoming_request_id():
    supplied = (request.headers.get("X-Request-ID") or "").strip()
    if supplied and len(supplied) <= _MAX_REQUEST_ID_LEN:
        return supplied
    return uuid.uuid4().hex[:12]


def _access_level(status, duration_ms):
    if status >= 500:
        return logging.ERROR
    if duration_ms > SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.DEBUG


def init_request_timing(app: Flask):
    @app.before_request
    def _begin_request():
        g.request_started = time.perf_counter()
        g.request_id = _incoming_request_id()

    @app.after_request
    def _finish_request(response):
        started = g.get("request_started")
        if started is None:
            return response

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        if request.path not in PROBE_PATHS:
            logger.log(
                _access_level(response.status_code, duration_ms),
                "%s %s -> %d in %.0fms",
                request.method, request.path, response.status_code, duration_ms,
                extra={
                    "method": request.method,
                    "path": request.path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "remote_addr": request.remote_addr,
                },
            )
        return response
