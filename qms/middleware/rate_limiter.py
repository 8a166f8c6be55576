"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in qms/__init__.py with no default limits;
this module applies granular limits per route category.

Usage:
    from qms.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Blueprint name → limit string (per remote IP)
BLUEPRINT_LIMITS = {
    "auth": "20/minute",
    "records": "120/minute",
    "business_areas": "60/minute",
    "audit": "60/minute",
}


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth (login):       20/minute  (credential guessing)
        - Record CRUD:       120/minute
        - Areas / audit:      60/minute
        - Health check:       exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name, limit in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(limit)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: %s", BLUEPRINT_LIMITS)
