"""
List Users Handler (admin only).
"""
from portal.service import get_portal
from portal.utils import api_handler, format_response, get_query_param


@api_handler
def handler(event, context):
    """
    GET /users?role=admin|candidate
    """
    role = get_query_param(event, 'role')
    portal = get_portal()
    users = portal.users.list(portal.users.identify(event), role=role)
    return format_response(200, {
        'users': [u.public() for u in users],
        'totalUsers': len(users)
    })
