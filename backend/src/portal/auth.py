"""
Authentication utilities for extracting the caller's identity from Cognito tokens.

Credentials are verified by the authorizer in front of API Gateway (and by
UserManager.authenticate at login). current_identity() is the claims-only
view; UserManager.identify() resolves it to the stored user record.
"""
from typing import Optional

from .config import config
from .models import Identity, Role


def _get_claims(event: dict) -> Optional[dict]:
    try:
        return event['requestContext']['authorizer']['claims']
    except (KeyError, TypeError):
        return None


def get_user_sub(event: dict) -> Optional[str]:
    """
    Extract user sub (unique ID) from Cognito authorizer claims.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        User sub string or None if not authenticated
    """
    claims = _get_claims(event)
    if not claims:
        return None
    return claims.get('sub')


def get_user_groups(event: dict) -> list:
    """Extract user groups (admin, candidate) from Cognito claims."""
    claims = _get_claims(event) or {}
    groups = claims.get('cognito:groups', '')
    if isinstance(groups, str):
        return groups.split(',') if groups else []
    return groups or []


def get_username(event: dict) -> Optional[str]:
    """Username claim: `cognito:username` on ID tokens, `username` on access tokens."""
    claims = _get_claims(event) or {}
    return claims.get('cognito:username') or claims.get('username')


def get_user_role(event: dict) -> str:
    """
    Role from group membership.

    Custom attributes such as `custom:role` are ignored: unless the app client
    marks them read-only, users can write them themselves.
    """
    if config.ADMIN_GROUP in get_user_groups(event):
        return Role.ADMIN
    return Role.CANDIDATE


def current_identity(event: dict) -> Optional[Identity]:
    """
    Build the caller's identity for this request.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        Identity or None when the request carries no authorizer claims
    """
    user_id = get_user_sub(event)
    if not user_id:
        return None
    return Identity(id=user_id, role=get_user_role(event))


def get_source_ip(event: dict) -> Optional[str]:
    """Caller IP as seen by API Gateway."""
    try:
        return event['requestContext']['identity']['sourceIp']
    except (KeyError, TypeError):
        return None


def get_user_agent(event: dict) -> Optional[str]:
    try:
        return event['requestContext']['identity']['userAgent']
    except (KeyError, TypeError):
        return None
