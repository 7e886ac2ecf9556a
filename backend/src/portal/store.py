"""
Entity store interface and an in-process implementation.

Stores enforce referential integrity (inserts referencing a missing id fail
with NotFound), uniqueness of usernames, candidate ids and
(task, candidate) submission pairs (Conflict), and cascade task deletes to
submissions. Every method is one atomic unit.
"""
import threading
from typing import Dict, List, Optional, Set, Tuple

from .errors import Conflict, NotFound
from .models import Attendance, Submission, Task, User


class EntityStore:
    """CRUD and filtered-list primitives for users, tasks, submissions and attendance."""

    # Users
    def get_user(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_user_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def insert_user(self, user: User) -> User:
        raise NotImplementedError

    def update_user(self, user: User) -> User:
        raise NotImplementedError

    def list_users(self, role: Optional[str] = None) -> List[User]:
        raise NotImplementedError

    # Tasks
    def get_task(self, task_id: str) -> Optional[Task]:
        raise NotImplementedError

    def insert_task(self, task: Task) -> Task:
        raise NotImplementedError

    def update_task(self, task: Task) -> Task:
        raise NotImplementedError

    def delete_task(self, task_id: str) -> int:
        """Delete a task and its submissions. Returns the number of submissions removed."""
        raise NotImplementedError

    def list_tasks(self) -> List[Task]:
        raise NotImplementedError

    # Submissions
    def get_submission(self, submission_id: str) -> Optional[Submission]:
        raise NotImplementedError

    def find_submission(self, task_id: str, candidate_id: str) -> Optional[Submission]:
        raise NotImplementedError

    def insert_submission(self, submission: Submission) -> Submission:
        raise NotImplementedError

    def update_submission(self, submission: Submission) -> Submission:
        raise NotImplementedError

    def list_submissions(self, task_id: Optional[str] = None,
                         candidate_id: Optional[str] = None) -> List[Submission]:
        raise NotImplementedError

    # Attendance
    def insert_attendance(self, record: Attendance) -> Attendance:
        raise NotImplementedError

    def list_attendance(self, user_id: Optional[str] = None,
                        task_id: Optional[str] = None) -> List[Attendance]:
        raise NotImplementedError


def _copy(entity):
    return entity.model_copy(deep=True) if entity is not None else None


class MemoryEntityStore(EntityStore):
    """Dictionary-backed store for local runs and tests. Guarded by one lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._tasks: Dict[str, Task] = {}
        self._submissions: Dict[str, Submission] = {}
        self._attendance: Dict[str, Attendance] = {}
        self._usernames: Dict[str, str] = {}
        self._candidate_ids: Set[str] = set()
        self._pairs: Dict[Tuple[str, str], str] = {}

    def _require_user(self, user_id: str, field: str):
        if user_id not in self._users:
            raise NotFound(f'User {user_id} not found', field=field)

    def _require_task(self, task_id: str, field: str = 'taskId'):
        if task_id not in self._tasks:
            raise NotFound(f'Task {task_id} not found', field=field)

    # Users

    def get_user(self, user_id):
        with self._lock:
            return _copy(self._users.get(user_id))

    def get_user_by_username(self, username):
        with self._lock:
            user_id = self._usernames.get(username)
            return _copy(self._users.get(user_id)) if user_id else None

    def insert_user(self, user):
        with self._lock:
            if user.id in self._users:
                raise Conflict('User already exists')
            if user.username in self._usernames:
                raise Conflict('Username already exists', field='username')
            if user.candidate_id and user.candidate_id in self._candidate_ids:
                raise Conflict('Candidate ID already exists', field='candidateId')
            self._users[user.id] = _copy(user)
            self._usernames[user.username] = user.id
            if user.candidate_id:
                self._candidate_ids.add(user.candidate_id)
            return _copy(user)

    def update_user(self, user):
        with self._lock:
            current = self._users.get(user.id)
            if current is None:
                raise NotFound(f'User {user.id} not found')
            # Identity fields are fixed once registered
            self._users[user.id] = user.model_copy(update={
                'username': current.username,
                'role': current.role,
                'candidate_id': current.candidate_id,
            }, deep=True)
            return _copy(self._users[user.id])

    def list_users(self, role=None):
        with self._lock:
            users = [u for u in self._users.values() if role is None or u.role == role]
            return [_copy(u) for u in sorted(users, key=lambda u: u.created_at)]

    # Tasks

    def get_task(self, task_id):
        with self._lock:
            return _copy(self._tasks.get(task_id))

    def insert_task(self, task):
        with self._lock:
            self._require_user(task.created_by, 'createdBy')
            if task.assigned_to_id is not None:
                self._require_user(task.assigned_to_id, 'assignedToId')
            self._tasks[task.id] = _copy(task)
            return _copy(task)

    def update_task(self, task):
        with self._lock:
            if task.id not in self._tasks:
                raise NotFound(f'Task {task.id} not found')
            if task.assigned_to_id is not None:
                self._require_user(task.assigned_to_id, 'assignedToId')
            self._tasks[task.id] = _copy(task)
            return _copy(task)

    def delete_task(self, task_id):
        with self._lock:
            if self._tasks.pop(task_id, None) is None:
                return 0
            doomed = [s for s in self._submissions.values() if s.task_id == task_id]
            for submission in doomed:
                del self._submissions[submission.id]
                self._pairs.pop((submission.task_id, submission.candidate_id), None)
            return len(doomed)

    def list_tasks(self):
        with self._lock:
            return [_copy(t) for t in self._tasks.values()]

    # Submissions

    def get_submission(self, submission_id):
        with self._lock:
            return _copy(self._submissions.get(submission_id))

    def find_submission(self, task_id, candidate_id):
        with self._lock:
            submission_id = self._pairs.get((task_id, candidate_id))
            return _copy(self._submissions.get(submission_id)) if submission_id else None

    def insert_submission(self, submission):
        with self._lock:
            self._require_task(submission.task_id)
            self._require_user(submission.candidate_id, 'candidateId')
            pair = (submission.task_id, submission.candidate_id)
            if pair in self._pairs:
                raise Conflict('A submission for this task already exists', field='taskId')
            self._submissions[submission.id] = _copy(submission)
            self._pairs[pair] = submission.id
            return _copy(submission)

    def update_submission(self, submission):
        with self._lock:
            if submission.id not in self._submissions:
                raise NotFound(f'Submission {submission.id} not found')
            self._submissions[submission.id] = _copy(submission)
            return _copy(submission)

    def list_submissions(self, task_id=None, candidate_id=None):
        with self._lock:
            return [
                _copy(s) for s in self._submissions.values()
                if (task_id is None or s.task_id == task_id)
                and (candidate_id is None or s.candidate_id == candidate_id)
            ]

    # Attendance

    def insert_attendance(self, record):
        with self._lock:
            self._require_user(record.user_id, 'userId')
            if record.task_id is not None:
                self._require_task(record.task_id)
            self._attendance[record.id] = _copy(record)
            return _copy(record)

    def list_attendance(self, user_id=None, task_id=None):
        with self._lock:
            return [
                _copy(a) for a in self._attendance.values()
                if (user_id is None or a.user_id == user_id)
                and (task_id is None or a.task_id == task_id)
            ]
