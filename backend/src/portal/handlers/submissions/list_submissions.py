"""
List Submissions Handler.
Admins see all submissions (optionally filtered); candidates see only their own.
Each row carries the candidate and task records for display.
"""
from portal.service import get_portal
from portal.utils import api_handler, format_response, get_query_param


@api_handler
def handler(event, context):
    """
    GET /submissions?taskId=...&candidateId=...
    """
    portal = get_portal()
    rows = portal.submissions.list(
        portal.users.identify(event),
        task_id=get_query_param(event, 'taskId'),
        candidate_id=get_query_param(event, 'candidateId'),
    )
    return format_response(200, {
        'submissions': rows,
        'totalSubmissions': len(rows)
    })
