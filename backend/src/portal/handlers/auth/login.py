"""
Login Handler.
Verifies a username/password pair. Session tokens are issued by the identity provider.
"""
from portal.schemas import LoginRequest
from portal.service import get_portal
from portal.utils import api_handler, format_response, parse_request


@api_handler
def handler(event, context):
    """
    POST /auth/login
    Body: { "username": "...", "password": "..." }
    """
    request = parse_request(LoginRequest, event)
    user = get_portal().users.authenticate(request.username, request.password)
    return format_response(200, user.public())
