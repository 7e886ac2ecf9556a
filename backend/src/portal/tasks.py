"""
Task lifecycle: creation, assignment-target resolution and per-caller visibility.
Task status only moves active → archived.
"""
from typing import List, Optional

from .errors import NotFound, ValidationError
from .logging import logger
from .models import Identity, Role, Task, TaskStatus
from .policy import Operation, can_view_task, decide, require_identity
from .schemas import CreateTaskRequest, UpdateTaskRequest
from .store import EntityStore


class TaskManager:

    def __init__(self, store: EntityStore):
        self.store = store

    def _check_assignee(self, assigned_to_id: Optional[str]) -> None:
        if assigned_to_id is None:
            return
        user = self.store.get_user(assigned_to_id)
        if user is None:
            raise NotFound(f"User {assigned_to_id} not found", field='assignedToId')
        if user.role != Role.CANDIDATE:
            raise ValidationError("Tasks can only be assigned to candidates", field='assignedToId')

    def create(self, identity: Optional[Identity], request: CreateTaskRequest) -> Task:
        decide(identity, Operation.CREATE_TASK)
        self._check_assignee(request.assigned_to_id)
        task = Task(
            title=request.title,
            description=request.description,
            assigned_to_id=request.assigned_to_id,
            deadline=request.deadline,
            status=TaskStatus.ACTIVE,
            created_by=identity.id,
        )
        task = self.store.insert_task(task)
        logger.info(f"Task {task.id} created by {identity.id} for {task.assigned_to_id or 'all candidates'}")
        return task

    def list(self, identity: Optional[Identity]) -> List[Task]:
        """All tasks for admins, assigned-to-me or assigned-to-all for candidates, by deadline."""
        identity = require_identity(identity)
        decide(identity, Operation.LIST_TASKS)
        tasks = [t for t in self.store.list_tasks() if can_view_task(identity, t)]
        return sorted(tasks, key=lambda t: t.deadline)

    def get(self, identity: Optional[Identity], task_id: str) -> Task:
        identity = require_identity(identity)
        task = self.store.get_task(task_id)
        # Tasks a candidate cannot see are reported as absent
        if task is None or not can_view_task(identity, task):
            raise NotFound(f"Task {task_id} not found")
        return task

    def update(self, identity: Optional[Identity], task_id: str, patch: UpdateTaskRequest) -> Task:
        decide(identity, Operation.UPDATE_TASK)
        task = self.store.get_task(task_id)
        if task is None:
            raise NotFound(f"Task {task_id} not found")

        changes = patch.provided()
        if task.status == TaskStatus.ARCHIVED and changes.get('status') == TaskStatus.ACTIVE:
            raise ValidationError("Archived tasks cannot be reactivated", field='status')
        if 'assigned_to_id' in changes:
            self._check_assignee(changes['assigned_to_id'])

        task = self.store.update_task(task.model_copy(update=changes))
        logger.info(f"Task {task_id} updated: {sorted(changes)}")
        return task

    def delete(self, identity: Optional[Identity], task_id: str) -> None:
        """Remove a task and its submissions. Deleting an absent task is a no-op."""
        decide(identity, Operation.DELETE_TASK)
        removed = self.store.delete_task(task_id)
        logger.info(f"Task {task_id} delete requested by {identity.id}, {removed} submissions removed")
