"""
List Tasks Handler.
Admins get every task; candidates get tasks assigned to them or to all candidates.
Sorted by deadline, soonest first.
"""
from portal.service import get_portal
from portal.utils import api_handler, format_response


@api_handler
def handler(event, context):
    """
    GET /tasks
    """
    portal = get_portal()
    tasks = portal.tasks.list(portal.users.identify(event))
    return format_response(200, {
        'tasks': [t.to_json() for t in tasks],
        'totalTasks': len(tasks)
    })
