"""
Tests for the submission lifecycle manager.
"""
import base64

import pydantic
import pytest
from botocore.exceptions import ClientError

from conftest import make_task
from portal.errors import Conflict, Forbidden, NotFound, ValidationError
from portal.models import SubmissionStatus
from portal.schemas import FileUpload, ReviewSubmissionRequest, UpdateTaskRequest


def _upload(name='answer.pdf', data=b'%PDF-1.4 fake', content_type='application/pdf'):
    return FileUpload(name=name, content_type=content_type, data=base64.b64encode(data).decode())


def _review(status='approved', **kwargs):
    return ReviewSubmissionRequest(status=status, **kwargs)


class TestCreateSubmission:

    def test_text_submission_starts_pending(self, portal, admin, candidate):
        task = make_task(portal, admin)
        submission = portal.submissions.create(candidate, task.id, content='done')

        assert submission.status == SubmissionStatus.PENDING
        assert submission.candidate_id == candidate.id
        assert submission.content == 'done'
        assert submission.file_url is None
        assert submission.feedback is None and submission.score is None

    def test_file_submission_stores_blob_first(self, portal, blobs, admin, candidate):
        task = make_task(portal, admin)
        submission = portal.submissions.create(candidate, task.id, file=_upload())

        blobs.store.assert_called_once_with(b'%PDF-1.4 fake', 'answer.pdf', 'application/pdf')
        assert submission.file_url.endswith('answer.pdf')
        assert submission.file_name == 'answer.pdf'
        assert submission.file_type == 'application/pdf'

    @pytest.mark.parametrize('content', [None, '', '   '])
    def test_no_content_or_file(self, portal, admin, candidate, content):
        task = make_task(portal, admin)
        with pytest.raises(ValidationError) as excinfo:
            portal.submissions.create(candidate, task.id, content=content)
        assert excinfo.value.message == 'no content or file'

    def test_missing_task(self, portal, candidate):
        with pytest.raises(NotFound):
            portal.submissions.create(candidate, 'missing', content='x')

    def test_task_assigned_to_someone_else(self, portal, admin, candidate, other_candidate):
        task = make_task(portal, admin, assigned_to_id=candidate.id)
        with pytest.raises(Forbidden):
            portal.submissions.create(other_candidate, task.id, content='sneaky')

    def test_admin_cannot_submit(self, portal, admin):
        task = make_task(portal, admin)
        with pytest.raises(Forbidden):
            portal.submissions.create(admin, task.id, content='x')

    def test_archived_task(self, portal, admin, candidate):
        task = make_task(portal, admin)
        portal.tasks.update(admin, task.id, UpdateTaskRequest(status='archived'))
        with pytest.raises(ValidationError):
            portal.submissions.create(candidate, task.id, content='late')

    def test_one_submission_per_task_and_candidate(self, portal, blobs, admin, candidate, other_candidate):
        task = make_task(portal, admin)
        portal.submissions.create(candidate, task.id, content='first')

        with pytest.raises(Conflict):
            portal.submissions.create(candidate, task.id, file=_upload())
        blobs.store.assert_not_called()

        # Other candidates are unaffected
        portal.submissions.create(other_candidate, task.id, content='mine')

    def test_failed_store_write_removes_blob(self, portal, store, blobs, admin, candidate, monkeypatch):
        task = make_task(portal, admin)

        def _fail(submission):
            raise Conflict('A submission for this task already exists')

        monkeypatch.setattr(store, 'insert_submission', _fail)
        with pytest.raises(Conflict):
            portal.submissions.create(candidate, task.id, file=_upload())

        blobs.delete.assert_called_once()
        assert blobs.delete.call_args[0][0].endswith('answer.pdf')
        assert store.list_submissions() == []

    def test_blob_cleanup_failure_keeps_original_error(self, portal, store, blobs, admin, candidate, monkeypatch):
        task = make_task(portal, admin)

        def _fail(submission):
            raise NotFound('Task gone')

        monkeypatch.setattr(store, 'insert_submission', _fail)
        blobs.delete.side_effect = ClientError({'Error': {'Code': 'AccessDenied', 'Message': 'no'}}, 'DeleteObject')

        with pytest.raises(NotFound):
            portal.submissions.create(candidate, task.id, file=_upload())


class TestListSubmissions:

    def test_rows_are_denormalized(self, portal, admin, candidate):
        task = make_task(portal, admin)
        portal.submissions.create(candidate, task.id, content='done', file=_upload())

        rows = portal.submissions.list(admin)
        assert len(rows) == 1
        row = rows[0]
        assert row['candidate']['username'] == 'carol'
        assert 'passwordHash' not in row['candidate']
        assert row['task']['title'] == 'Onboarding'
        assert row['fileUrl'].startswith('signed:')

    def test_candidate_sees_only_own(self, portal, admin, candidate, other_candidate):
        task = make_task(portal, admin)
        mine = portal.submissions.create(candidate, task.id, content='mine')
        portal.submissions.create(other_candidate, task.id, content='theirs')

        rows = portal.submissions.list(candidate)
        assert [r['id'] for r in rows] == [mine.id]

        rows = portal.submissions.list(candidate, candidate_id=candidate.id)
        assert [r['id'] for r in rows] == [mine.id]

    def test_candidate_requesting_other_candidate_is_forbidden(self, portal, candidate, other_candidate):
        with pytest.raises(Forbidden):
            portal.submissions.list(candidate, candidate_id=other_candidate.id)

    def test_admin_filters(self, portal, admin, candidate, other_candidate):
        first = make_task(portal, admin, title='First')
        second = make_task(portal, admin, title='Second')
        a = portal.submissions.create(candidate, first.id, content='a')
        portal.submissions.create(candidate, second.id, content='b')
        portal.submissions.create(other_candidate, first.id, content='c')

        assert len(portal.submissions.list(admin)) == 3
        assert len(portal.submissions.list(admin, task_id=first.id)) == 2
        assert len(portal.submissions.list(admin, candidate_id=candidate.id)) == 2
        rows = portal.submissions.list(admin, task_id=first.id, candidate_id=candidate.id)
        assert [r['id'] for r in rows] == [a.id]


class TestReviewSubmission:

    def test_onboarding_scenario(self, portal, admin, candidate):
        task = make_task(portal, admin, title='Onboarding', days=7)
        assert task.id in [t.id for t in portal.tasks.list(candidate)]

        submission = portal.submissions.create(candidate, task.id, content='done')
        assert submission.status == 'pending'

        reviewed = portal.submissions.review(admin, submission.id, _review('approved', score=90))
        assert reviewed.status == 'approved'
        assert reviewed.score == 90
        assert portal.store.get_submission(submission.id).status == 'approved'

    def test_reject_with_feedback(self, portal, admin, candidate):
        task = make_task(portal, admin)
        submission = portal.submissions.create(candidate, task.id, content='meh')

        reviewed = portal.submissions.review(admin, submission.id, _review('rejected', feedback='Needs tests'))
        assert reviewed.status == SubmissionStatus.REJECTED
        assert reviewed.feedback == 'Needs tests'
        assert reviewed.content == 'meh'
        assert reviewed.submitted_at == submission.submitted_at

    def test_candidate_cannot_review(self, portal, admin, candidate):
        task = make_task(portal, admin)
        submission = portal.submissions.create(candidate, task.id, content='x')
        with pytest.raises(Forbidden):
            portal.submissions.review(candidate, submission.id, _review())
        assert portal.store.get_submission(submission.id).status == SubmissionStatus.PENDING

    def test_missing_submission(self, portal, admin):
        with pytest.raises(NotFound):
            portal.submissions.review(admin, 'missing', _review())

    def test_re_review_overwrites(self, portal, admin, candidate):
        task = make_task(portal, admin)
        submission = portal.submissions.create(candidate, task.id, content='x')
        portal.submissions.review(admin, submission.id, _review('approved', score=70))
        again = portal.submissions.review(admin, submission.id, _review('rejected'))

        assert again.status == SubmissionStatus.REJECTED
        # score untouched when not resent
        assert again.score == 70

    @pytest.mark.parametrize('score', [-1, 101])
    def test_score_out_of_range(self, score):
        with pytest.raises(pydantic.ValidationError):
            ReviewSubmissionRequest(status='approved', score=score)

    def test_pending_is_not_a_review_outcome(self):
        with pytest.raises(pydantic.ValidationError):
            ReviewSubmissionRequest(status='pending')


class TestCascadeDelete:

    def test_deleting_task_removes_its_submissions(self, portal, admin, candidate, other_candidate):
        doomed = make_task(portal, admin, title='Doomed')
        kept = make_task(portal, admin, title='Kept')
        portal.submissions.create(candidate, doomed.id, content='a')
        portal.submissions.create(other_candidate, doomed.id, content='b')
        survivor = portal.submissions.create(candidate, kept.id, content='c')

        portal.tasks.delete(admin, doomed.id)

        remaining = portal.store.list_submissions()
        assert [s.id for s in remaining] == [survivor.id]
        assert all(s.task_id != doomed.id for s in remaining)
        assert portal.store.find_submission(doomed.id, candidate.id) is None
