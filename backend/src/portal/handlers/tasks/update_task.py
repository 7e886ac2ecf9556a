"""
Update Task Handler (admin only).
Partial update of title, description, assignedToId, deadline and status.
"""
from portal.schemas import UpdateTaskRequest
from portal.service import get_portal
from portal.utils import api_handler, format_response, parse_request, require_path_param


@api_handler
def handler(event, context):
    """
    PATCH /tasks/{taskId}
    Body: any subset of { "title", "description", "deadline", "assignedToId", "status": "active" | "archived" }
    """
    task_id = require_path_param(event, 'taskId')
    patch = parse_request(UpdateTaskRequest, event)
    portal = get_portal()
    task = portal.tasks.update(portal.users.identify(event), task_id, patch)
    return format_response(200, task.to_json())
