"""
Seed Data Handler - invoked directly at deployment time, not routed through API Gateway.
"""
from portal.logging import logger
from portal.seed import seed_defaults
from portal.service import get_portal


def handler(event, context):
    """
    Creates the demo admin, candidate and tasks when no admin exists.

    Returns:
        { "seeded": true, ...ids } or { "seeded": false }
    """
    summary = seed_defaults(get_portal())
    if summary is None:
        logger.info("Seed skipped: an admin already exists")
        return {'seeded': False}
    return {'seeded': True, **summary}
