"""
Review Submission Handler (admin only).
Approves or rejects a submission and attaches feedback and a 0-100 score.
"""
from portal.schemas import ReviewSubmissionRequest
from portal.service import get_portal
from portal.utils import api_handler, format_response, parse_request, require_path_param


@api_handler
def handler(event, context):
    """
    PATCH /submissions/{submissionId}
    Body: { "status": "approved" | "rejected", "feedback"?: "...", "score"?: 0-100 }
    """
    submission_id = require_path_param(event, 'submissionId')
    request = parse_request(ReviewSubmissionRequest, event)
    portal = get_portal()
    submission = portal.submissions.review(portal.users.identify(event), submission_id, request)
    return format_response(200, submission.to_json())
