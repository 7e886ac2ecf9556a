from portal.schemas import CreateSubmissionRequest
from portal.service import get_portal
from portal.utils import api_handler, format_response, parse_request


@api_handler
def handler(event, context):
    """
    Handler for submitting work for a task.
    POST /submissions
    Body: { "taskId": "...", "content"?: "...",
            "file"?: { "name": "...", "contentType": "...", "data": "<base64>" } }

    The candidate is always the caller; at least one of content or file is required.
    """
    request = parse_request(CreateSubmissionRequest, event)
    portal = get_portal()
    submission = portal.submissions.create(
        portal.users.identify(event),
        request.task_id,
        content=request.content,
        file=request.file,
    )
    return format_response(201, submission.to_json())
