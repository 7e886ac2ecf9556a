"""
Authorization policy.

A pure decision function: given the caller, an operation and (optionally)
the target, either allow or raise Forbidden. Unknown operations are denied.
"""
from typing import Any, Optional

from .errors import Forbidden, Unauthenticated
from .models import Identity, Role, Task


class Operation:
    """Operations subject to authorization."""
    REGISTER_ADMIN = 'register_admin'

    LIST_USERS = 'list_users'
    GET_USER = 'get_user'
    UPDATE_USER = 'update_user'

    LIST_TASKS = 'list_tasks'
    VIEW_TASK = 'view_task'
    CREATE_TASK = 'create_task'
    UPDATE_TASK = 'update_task'
    DELETE_TASK = 'delete_task'

    LIST_SUBMISSIONS = 'list_submissions'
    CREATE_SUBMISSION = 'create_submission'
    REVIEW_SUBMISSION = 'review_submission'

    RECORD_ATTENDANCE = 'record_attendance'
    QUERY_ATTENDANCE = 'query_attendance'


ADMIN_ONLY = frozenset([
    Operation.REGISTER_ADMIN,
    Operation.LIST_USERS,
    Operation.CREATE_TASK,
    Operation.UPDATE_TASK,
    Operation.DELETE_TASK,
    Operation.REVIEW_SUBMISSION,
])

ANY_CALLER = frozenset([
    Operation.LIST_TASKS,
    Operation.RECORD_ATTENDANCE,
])


def require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise Unauthenticated('Authentication required')
    return identity


def can_view_task(identity: Identity, task: Task) -> bool:
    """Admins see every task; candidates see theirs and the ones for everyone."""
    if identity.is_admin:
        return True
    return task.assigned_to_id is None or task.assigned_to_id == identity.id


def _allowed(identity: Identity, operation: str, target: Any) -> bool:
    if operation in ADMIN_ONLY:
        return identity.is_admin
    if operation in ANY_CALLER:
        return True

    if operation in (Operation.GET_USER, Operation.UPDATE_USER):
        # target: the user id being read or changed
        return identity.is_admin or target == identity.id

    if operation == Operation.VIEW_TASK:
        return can_view_task(identity, target)

    if operation in (Operation.LIST_SUBMISSIONS, Operation.QUERY_ATTENDANCE):
        # target: the requested owner filter, None meaning "everyone"
        if identity.is_admin:
            return True
        return target is None or target == identity.id

    if operation == Operation.CREATE_SUBMISSION:
        # target: the task being submitted against
        return identity.role == Role.CANDIDATE and can_view_task(identity, target)

    return False


def decide(identity: Optional[Identity], operation: str, target: Any = None) -> bool:
    """
    Decide whether the caller may perform an operation.

    Args:
        identity: the caller, or None when unauthenticated
        operation: one of the Operation constants
        target: the entity or id the operation applies to, where relevant

    Returns:
        True when allowed

    Raises:
        Unauthenticated: no caller identity
        Forbidden: the caller may not perform the operation
    """
    identity = require_identity(identity)
    if not _allowed(identity, operation, target):
        raise Forbidden(f'Not permitted to {operation.replace("_", " ")}')
    return True
