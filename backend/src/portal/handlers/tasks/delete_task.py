from portal.service import get_portal
from portal.utils import api_handler, format_response, require_path_param


@api_handler
def handler(event, context):
    """
    Handler for deleting a task together with its submissions (admin only).
    DELETE /tasks/{taskId}
    Deleting a task that does not exist still answers 204.
    """
    task_id = require_path_param(event, 'taskId')
    portal = get_portal()
    portal.tasks.delete(portal.users.identify(event), task_id)
    return format_response(204, None)
