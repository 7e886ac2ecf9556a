"""
Create Task Handler (admin only).
A null or missing assignedToId assigns the task to every candidate.
"""
from portal.schemas import CreateTaskRequest
from portal.service import get_portal
from portal.utils import api_handler, format_response, parse_request


@api_handler
def handler(event, context):
    """
    POST /tasks
    Body: { "title": "...", "description": "...", "deadline": "<ISO-8601>", "assignedToId"?: "..." | null }
    """
    request = parse_request(CreateTaskRequest, event)
    portal = get_portal()
    task = portal.tasks.create(portal.users.identify(event), request)
    return format_response(201, task.to_json())
