"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in testhub/__init__.py with no default limits;
this module applies the limits after blueprints are registered.

Usage:
    from testhub.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)


def init_rate_limits(app, limiter):
    """
    Apply rate limits to the case transfer blueprint.

    Imports hold one transaction open for the whole payload (up to the
    MAX_IMPORT_BYTES cap); the limit is per remote IP.
    The limit string comes from CASE_TRANSFER_RATE_LIMIT.

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    limit = app.config.get("CASE_TRANSFER_RATE_LIMIT", "30/minute")
    bp = app.blueprints.get("case_transfer")
    if bp:
        limiter.limit(limit)(bp)

    app.logger.info("Rate limiter configured for case transfer: %s", limit)
