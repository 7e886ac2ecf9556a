"""
Update Profile Handler.
Username, role and candidate ID cannot be changed through this route.
"""
from portal.schemas import UpdateProfileRequest
from portal.service import get_portal
from portal.utils import api_handler, format_response, parse_request, require_path_param


@api_handler
def handler(event, context):
    """
    PATCH /users/{userId}
    Body: { "fullName"?: "...", "mobileNumber"?: "...", "dateOfBirth"?: "YYYY-MM-DD", "profilePhoto"?: "..." }
    """
    user_id = require_path_param(event, 'userId')
    patch = parse_request(UpdateProfileRequest, event)
    portal = get_portal()
    user = portal.users.update_profile(portal.users.identify(event), user_id, patch)
    return format_response(200, user.public())
