"""
Attendance recorder: an append-only ledger of attestations
(photo + coordinates + IP address + device details).
"""
from typing import List, Optional

from botocore.exceptions import ClientError

from .errors import ValidationError
from .logging import logger
from .models import Attendance, Identity
from .policy import Operation, decide, require_identity
from .s3_utils import S3BlobStore
from .schemas import AttendanceCaptureRequest
from .store import EntityStore


def _missing(value) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


class AttendanceRecorder:

    def __init__(self, store: EntityStore, blobs: S3BlobStore):
        self.store = store
        self.blobs = blobs

    def _discard_photo(self, url: str) -> None:
        try:
            self.blobs.delete(url)
        except ClientError as e:
            logger.warning(f"Could not remove orphaned photo {url}: {e}")

    @staticmethod
    def validate_attestation(photo, latitude, longitude, ip_address, device_details) -> None:
        """Raise ValidationError naming the first missing or out-of-range field."""
        for field, value in (('photo', photo), ('latitude', latitude), ('longitude', longitude),
                             ('ipAddress', ip_address), ('deviceDetails', device_details)):
            if _missing(value):
                raise ValidationError(f"Missing attestation field: {field}", field=field)
        if not -90 <= latitude <= 90:
            raise ValidationError("Latitude must be between -90 and 90", field='latitude')
        if not -180 <= longitude <= 180:
            raise ValidationError("Longitude must be between -180 and 180", field='longitude')

    def record(self, identity: Optional[Identity], photo_url: str, latitude: float,
               longitude: float, ip_address: str, device_details: str,
               task_id: Optional[str] = None) -> Attendance:
        """Append one attendance record for the caller. Records are never changed afterwards."""
        decide(identity, Operation.RECORD_ATTENDANCE)
        self.validate_attestation(photo_url, latitude, longitude, ip_address, device_details)
        record = Attendance(
            user_id=identity.id,
            task_id=task_id,
            photo_url=photo_url,
            latitude=latitude,
            longitude=longitude,
            ip_address=ip_address,
            device_details=device_details,
        )
        record = self.store.insert_attendance(record)
        logger.info(f"Attendance {record.id} recorded for {identity.id}")
        return record

    def capture(self, identity: Optional[Identity], request: AttendanceCaptureRequest,
                ip_address: Optional[str]) -> Attendance:
        """
        Validate an attestation, store its photo, then append the record.

        If the record cannot be written the stored photo is removed and the
        original error propagates.
        """
        decide(identity, Operation.RECORD_ATTENDANCE)
        self.validate_attestation(request.photo, request.latitude, request.longitude,
                                  ip_address, request.device_details)
        photo = request.photo
        photo_url = self.blobs.store(photo.decode(), photo.name, photo.content_type)
        try:
            return self.record(
                identity,
                photo_url=photo_url,
                latitude=request.latitude,
                longitude=request.longitude,
                ip_address=ip_address,
                device_details=request.device_details,
                task_id=request.task_id,
            )
        except Exception:
            self._discard_photo(photo_url)
            raise

    def query(self, identity: Optional[Identity], user_id: Optional[str] = None,
              task_id: Optional[str] = None) -> List[Attendance]:
        """Matching records, newest first. Candidates only see their own."""
        identity = require_identity(identity)
        decide(identity, Operation.QUERY_ATTENDANCE, user_id)
        if not identity.is_admin:
            user_id = identity.id
        records = self.store.list_attendance(user_id, task_id)
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    def presign(self, record: Attendance) -> dict:
        row = record.to_json()
        row['photoUrl'] = self.blobs.presign(record.photo_url)
        return row
