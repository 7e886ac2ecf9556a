"""
Record Attendance Handler.
Stores the captured photo, then appends an attestation with the caller's
coordinates, source IP and device details.
"""
from portal.auth import get_source_ip, get_user_agent
from portal.schemas import AttendanceCaptureRequest
from portal.service import get_portal
from portal.utils import api_handler, format_response, parse_request


@api_handler
def handler(event, context):
    """
    POST /attendance
    Body: { "photo": { "name": "...", "contentType": "image/jpeg", "data": "<base64>" },
            "latitude": 0.0, "longitude": 0.0, "deviceDetails"?: "...", "taskId"?: "..." }

    deviceDetails defaults to the request's User-Agent.
    """
    request = parse_request(AttendanceCaptureRequest, event)
    if not request.device_details:
        request.device_details = get_user_agent(event)

    portal = get_portal()
    recorder = portal.attendance
    record = recorder.capture(portal.users.identify(event), request, ip_address=get_source_ip(event))
    return format_response(201, recorder.presign(record))
