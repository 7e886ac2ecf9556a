from portal.service import get_portal
from portal.utils import api_handler, format_response, require_path_param


@api_handler
def handler(event, context):
    """
    GET /tasks/{taskId}
    """
    task_id = require_path_param(event, 'taskId')
    portal = get_portal()
    task = portal.tasks.get(portal.users.identify(event), task_id)
    return format_response(200, task.to_json())
