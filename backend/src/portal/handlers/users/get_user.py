from portal.service import get_portal
from portal.utils import api_handler, format_response, require_path_param


@api_handler
def handler(event, context):
    """
    Handler to fetch one user. Callers may always fetch themselves; admins may fetch anyone.
    GET /users/{userId}
    """
    user_id = require_path_param(event, 'userId')
    portal = get_portal()
    user = portal.users.get(portal.users.identify(event), user_id)
    return format_response(200, user.public())
