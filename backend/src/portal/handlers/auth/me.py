from portal.service import get_portal
from portal.utils import api_handler, format_response


@api_handler
def handler(event, context):
    """
    Handler returning the caller's own user record.
    GET /auth/me
    """
    portal = get_portal()
    user = portal.users.current(portal.users.identify(event))
    return format_response(200, user.public())
