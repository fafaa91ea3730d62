"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in tilawah/__init__.py with no default limits;
this module applies granular limits per route category.

Usage:
    from tilawah.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
BULK_LIMIT = "10/minute"
PUBLIC_READ_LIMIT = "100/minute"

# Blueprints whose routes mutate coordinator-owned data
_WRITE_BLUEPRINTS = ("group", "participant", "period", "progress")


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Coordinator endpoints:  60/minute
        - Bulk enrolment:         10/minute (decorated on the route itself)
        - Public read-only view:  100/minute
        - Health check:           exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name in _WRITE_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("public")
    if bp:
        limiter.limit(PUBLIC_READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: write: %s, bulk: %s, public: %s",
        WRITE_LIMIT, BULK_LIMIT, PUBLIC_READ_LIMIT,
    )
