"""
Register Handler.
Creates a candidate account; admins may also create admin accounts.
A signed-in caller without a record is completing their own sign-up and the
record is keyed by their token subject.
"""
from portal.auth import get_user_sub
from portal.schemas import RegisterRequest
from portal.service import get_portal
from portal.utils import api_handler, format_response, parse_request


@api_handler
def handler(event, context):
    """
    POST /auth/register
    Body: { "username": "...", "password": "...", "fullName": "...", "role"?: "candidate" | "admin",
            "candidateId"?: "...", "mobileNumber"?: "...", "dateOfBirth"?: "YYYY-MM-DD", "profilePhoto"?: "..." }
    """
    request = parse_request(RegisterRequest, event)
    users = get_portal().users
    user = users.register(request, caller=users.identify(event), subject=get_user_sub(event))
    return format_response(201, user.public())
