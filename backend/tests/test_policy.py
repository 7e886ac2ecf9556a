"""
Tests for the authorization policy.
"""
from datetime import datetime, timedelta, timezone

import pytest

from portal.errors import Forbidden, Unauthenticated
from portal.models import Identity, Role, Task
from portal.policy import Operation, can_view_task, decide

ADMIN = Identity(id='a1', role=Role.ADMIN)
CAROL = Identity(id='c1', role=Role.CANDIDATE)
DAVE = Identity(id='c2', role=Role.CANDIDATE)


def _task(assigned_to_id=None):
    return Task(
        title='t',
        description='d',
        deadline=datetime.now(timezone.utc) + timedelta(days=1),
        assigned_to_id=assigned_to_id,
        created_by=ADMIN.id,
    )


class TestAdminOnly:

    @pytest.mark.parametrize('operation', [
        Operation.CREATE_TASK,
        Operation.UPDATE_TASK,
        Operation.DELETE_TASK,
        Operation.LIST_USERS,
        Operation.REVIEW_SUBMISSION,
        Operation.REGISTER_ADMIN,
    ])
    def test_admin_allowed_candidate_forbidden(self, operation):
        assert decide(ADMIN, operation) is True
        with pytest.raises(Forbidden):
            decide(CAROL, operation)

    def test_missing_identity_is_unauthenticated(self):
        with pytest.raises(Unauthenticated):
            decide(None, Operation.LIST_TASKS)

    def test_unknown_operation_denied(self):
        with pytest.raises(Forbidden):
            decide(ADMIN, 'launch_rockets')


class TestTaskVisibility:

    def test_unassigned_task_visible_to_every_candidate(self):
        task = _task(None)
        assert can_view_task(CAROL, task)
        assert can_view_task(DAVE, task)
        assert can_view_task(ADMIN, task)

    def test_assigned_task_only_visible_to_assignee_and_admins(self):
        task = _task(CAROL.id)
        assert can_view_task(CAROL, task)
        assert not can_view_task(DAVE, task)
        assert can_view_task(ADMIN, task)


class TestOwnership:

    def test_user_may_fetch_self(self):
        assert decide(CAROL, Operation.GET_USER, CAROL.id)

    def test_user_may_not_fetch_others(self):
        with pytest.raises(Forbidden):
            decide(CAROL, Operation.GET_USER, DAVE.id)

    def test_admin_may_fetch_anyone(self):
        assert decide(ADMIN, Operation.GET_USER, DAVE.id)

    def test_candidate_submission_filter_must_be_self(self):
        assert decide(CAROL, Operation.LIST_SUBMISSIONS, None)
        assert decide(CAROL, Operation.LIST_SUBMISSIONS, CAROL.id)
        with pytest.raises(Forbidden):
            decide(CAROL, Operation.LIST_SUBMISSIONS, DAVE.id)

    def test_candidate_attendance_filter_must_be_self(self):
        with pytest.raises(Forbidden):
            decide(CAROL, Operation.QUERY_ATTENDANCE, DAVE.id)
        assert decide(ADMIN, Operation.QUERY_ATTENDANCE, DAVE.id)


class TestCreateSubmission:

    def test_candidate_may_submit_to_visible_task(self):
        assert decide(CAROL, Operation.CREATE_SUBMISSION, _task(None))
        assert decide(CAROL, Operation.CREATE_SUBMISSION, _task(CAROL.id))

    def test_candidate_may_not_submit_to_someone_elses_task(self):
        with pytest.raises(Forbidden):
            decide(DAVE, Operation.CREATE_SUBMISSION, _task(CAROL.id))

    def test_admin_may_not_submit(self):
        with pytest.raises(Forbidden):
            decide(ADMIN, Operation.CREATE_SUBMISSION, _task(None))
