from portal.service import get_portal
from portal.utils import api_handler, format_response, get_query_param


@api_handler
def handler(event, context):
    """
    Handler to query attendance records, newest first.
    GET /attendance?userId=...&taskId=...
    Candidates only get their own records.
    """
    portal = get_portal()
    recorder = portal.attendance
    records = recorder.query(
        portal.users.identify(event),
        user_id=get_query_param(event, 'userId'),
        task_id=get_query_param(event, 'taskId'),
    )
    return format_response(200, {
        'attendance': [recorder.presign(r) for r in records],
        'totalRecords': len(records)
    })
