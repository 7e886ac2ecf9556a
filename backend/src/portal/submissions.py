"""
Submission lifecycle.

A candidate creates at most one submission per task; it starts pending and an
admin review moves it to approved or rejected, attaching feedback and score.

    pending --review(approved)--> approved
    pending --review(rejected)--> rejected

Re-reviewing an already reviewed submission is allowed and overwrites the
previous decision.
"""
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from .errors import Conflict, NotFound, ValidationError
from .logging import logger
from .models import Identity, Submission, SubmissionStatus, TaskStatus
from .policy import Operation, decide, require_identity
from .s3_utils import S3BlobStore
from .schemas import FileUpload, ReviewSubmissionRequest
from .store import EntityStore


class SubmissionManager:

    def __init__(self, store: EntityStore, blobs: S3BlobStore):
        self.store = store
        self.blobs = blobs

    def _discard_blob(self, url: str) -> None:
        try:
            self.blobs.delete(url)
        except ClientError as e:
            logger.warning(f"Could not remove orphaned upload {url}: {e}")

    def create(self, identity: Optional[Identity], task_id: str,
               content: Optional[str] = None, file: Optional[FileUpload] = None) -> Submission:
        """
        Submit work for a task on behalf of the caller.

        Args:
            identity: the submitting candidate
            task_id: task being answered
            content: optional text answer
            file: optional upload; stored before the submission record is written

        Returns:
            The new pending Submission

        Raises:
            ValidationError: neither content nor file, or the task is archived
            NotFound: the task does not exist
            Forbidden: caller is not a candidate or the task is not assigned to them
            Conflict: the caller already submitted for this task
        """
        identity = require_identity(identity)
        if content is not None and not content.strip():
            content = None
        if content is None and file is None:
            raise ValidationError("no content or file")

        task = self.store.get_task(task_id)
        if task is None:
            raise NotFound(f"Task {task_id} not found", field='taskId')
        decide(identity, Operation.CREATE_SUBMISSION, task)
        if task.status != TaskStatus.ACTIVE:
            raise ValidationError("Task is archived", field='taskId')

        if self.store.find_submission(task_id, identity.id) is not None:
            raise Conflict("A submission for this task already exists", field='taskId')

        submission = Submission(
            task_id=task_id,
            candidate_id=identity.id,
            content=content,
            status=SubmissionStatus.PENDING,
        )
        if file is not None:
            submission.file_url = self.blobs.store(file.decode(), file.name, file.content_type)
            submission.file_name = file.name
            submission.file_type = file.content_type

        # The record is written last, after the blob is durably stored
        try:
            submission = self.store.insert_submission(submission)
        except Exception:
            if submission.file_url:
                self._discard_blob(submission.file_url)
            raise

        logger.info(f"Submission {submission.id} created by {identity.id} for task {task_id}")
        return submission

    def list(self, identity: Optional[Identity], task_id: Optional[str] = None,
             candidate_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Submissions visible to the caller, joined with candidate and task.

        Admins may filter by task and/or candidate. Candidates only ever see
        their own; asking for someone else's is Forbidden.
        """
        identity = require_identity(identity)
        decide(identity, Operation.LIST_SUBMISSIONS, candidate_id)
        if not identity.is_admin:
            candidate_id = identity.id

        users = {}
        tasks = {}
        rows = []
        for submission in self.store.list_submissions(task_id, candidate_id):
            if submission.candidate_id not in users:
                users[submission.candidate_id] = self.store.get_user(submission.candidate_id)
            if submission.task_id not in tasks:
                tasks[submission.task_id] = self.store.get_task(submission.task_id)
            candidate = users[submission.candidate_id]
            task = tasks[submission.task_id]
            if candidate is None or task is None:
                continue

            row = submission.to_json()
            if submission.file_url:
                row['fileUrl'] = self.blobs.presign(submission.file_url)
            row['candidate'] = candidate.public()
            row['task'] = task.to_json()
            rows.append((submission.submitted_at, row))

        rows.sort(key=lambda r: r[0], reverse=True)
        return [row for _, row in rows]

    def review(self, identity: Optional[Identity], submission_id: str,
               request: ReviewSubmissionRequest) -> Submission:
        """Record an admin's decision, feedback and score."""
        decide(identity, Operation.REVIEW_SUBMISSION)
        submission = self.store.get_submission(submission_id)
        if submission is None:
            raise NotFound(f"Submission {submission_id} not found")

        if submission.status in SubmissionStatus.REVIEWED:
            logger.warning(
                f"Submission {submission_id} re-reviewed: {submission.status} -> {request.status}"
            )

        changes = request.provided()
        changes['status'] = request.status
        submission = self.store.update_submission(submission.model_copy(update=changes))
        logger.info(f"Submission {submission_id} reviewed by {identity.id}: {submission.status}")
        return submission
