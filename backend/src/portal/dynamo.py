"""
DynamoDB-backed entity store.

Multi-item writes go through transact_write_items so that foreign-key checks,
uniqueness guards and cascades succeed or fail together. Uniqueness guards
live in UNIQUES_TABLE as items keyed 'username#...', 'candidateId#...' and
'submission#<taskId>#<candidateId>', each pointing at the owning record.
"""
import boto3
from typing import List, Dict, Any, Optional, Sequence
from boto3.dynamodb.conditions import Key, Attr
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from .config import config
from .errors import Conflict, NotFound, PortalError
from .logging import logger
from .models import Attendance, Submission, Task, User
from .store import EntityStore

# DynamoDB limit on actions per transaction
MAX_TRANSACT_ITEMS = 100

TASK_INDEX = 'TaskIndex'
CANDIDATE_INDEX = 'CandidateIndex'
USER_INDEX = 'UserIndex'

_serializer = TypeSerializer()


def _typed(item: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a plain item to the low-level attribute-value format."""
    return {k: _serializer.serialize(v) for k, v in item.items()}


def unique_key(kind: str, *parts: str) -> str:
    return '#'.join((kind,) + parts)


def scan_all(table, **kwargs) -> List[Dict[str, Any]]:
    """Scan a table following LastEvaluatedKey until exhausted."""
    items = []
    while True:
        response = table.scan(**kwargs)
        items.extend(response.get('Items', []))
        last_key = response.get('LastEvaluatedKey')
        if not last_key:
            return items
        kwargs['ExclusiveStartKey'] = last_key


def query_all(table, **kwargs) -> List[Dict[str, Any]]:
    """Query a table or index following LastEvaluatedKey until exhausted."""
    items = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get('Items', []))
        last_key = response.get('LastEvaluatedKey')
        if not last_key:
            return items
        kwargs['ExclusiveStartKey'] = last_key


class DynamoEntityStore(EntityStore):
    """EntityStore over five DynamoDB tables."""

    def __init__(self, dynamodb=None):
        self.dynamodb = dynamodb or boto3.resource('dynamodb', region_name=config.AWS_REGION)
        self.client = self.dynamodb.meta.client
        self.users = self.dynamodb.Table(config.USERS_TABLE)
        self.tasks = self.dynamodb.Table(config.TASKS_TABLE)
        self.submissions = self.dynamodb.Table(config.SUBMISSIONS_TABLE)
        self.attendance = self.dynamodb.Table(config.ATTENDANCE_TABLE)
        self.uniques = self.dynamodb.Table(config.UNIQUES_TABLE)

    # Transaction helpers

    @staticmethod
    def _put(table_name: str, item: Dict[str, Any], key_name: str = 'id',
             must_exist: bool = False) -> Dict[str, Any]:
        condition = 'attribute_exists(#k)' if must_exist else 'attribute_not_exists(#k)'
        return {
            'Put': {
                'TableName': table_name,
                'Item': _typed(item),
                'ConditionExpression': condition,
                'ExpressionAttributeNames': {'#k': key_name},
            }
        }

    @staticmethod
    def _exists(table_name: str, key: Dict[str, Any]) -> Dict[str, Any]:
        key_name = next(iter(key))
        return {
            'ConditionCheck': {
                'TableName': table_name,
                'Key': _typed(key),
                'ConditionExpression': 'attribute_exists(#k)',
                'ExpressionAttributeNames': {'#k': key_name},
            }
        }

    @staticmethod
    def _delete(table_name: str, key: Dict[str, Any]) -> Dict[str, Any]:
        return {'Delete': {'TableName': table_name, 'Key': _typed(key)}}

    def _guard(self, key: str, owner_id: str) -> Dict[str, Any]:
        return self._put(config.UNIQUES_TABLE, {'uniqueKey': key, 'ownerId': owner_id},
                         key_name='uniqueKey')

    def _transact(self, actions: List[Dict[str, Any]],
                  failures: Sequence[Optional[PortalError]]) -> None:
        """
        Run one transaction, translating condition failures.

        Args:
            actions: TransactItems entries
            failures: error to raise when the action at the same index fails
                its condition (None to fall through to a generic Conflict)
        """
        try:
            self.client.transact_write_items(TransactItems=actions)
        except ClientError as e:
            code = e.response['Error']['Code']
            if code != 'TransactionCanceledException':
                logger.error(f"DynamoDB transaction failed: {e}")
                raise
            reasons = e.response.get('CancellationReasons', [])
            for index, reason in enumerate(reasons):
                if reason.get('Code') == 'ConditionalCheckFailed' and index < len(failures):
                    if failures[index] is not None:
                        raise failures[index]
            logger.warning(f"Transaction cancelled: {reasons}")
            raise Conflict('The write conflicted with a concurrent update')

    def _get(self, table, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return table.get_item(Key=key).get('Item')

    def _owner_of(self, key: str) -> Optional[str]:
        item = self._get(self.uniques, {'uniqueKey': key})
        return item.get('ownerId') if item else None

    # Users

    def get_user(self, user_id):
        item = self._get(self.users, {'id': user_id})
        return User.from_item(item) if item else None

    def get_user_by_username(self, username):
        user_id = self._owner_of(unique_key('username', username))
        return self.get_user(user_id) if user_id else None

    def insert_user(self, user):
        actions = [
            self._put(config.USERS_TABLE, user.to_item()),
            self._guard(unique_key('username', user.username), user.id),
        ]
        failures = [
            Conflict('User already exists'),
            Conflict('Username already exists', field='username'),
        ]
        if user.candidate_id:
            actions.append(self._guard(unique_key('candidateId', user.candidate_id), user.id))
            failures.append(Conflict('Candidate ID already exists', field='candidateId'))
        self._transact(actions, failures)
        logger.info(f"Inserted user {user.id} ({user.role})")
        return user

    def update_user(self, user):
        current = self.get_user(user.id)
        if current is None:
            raise NotFound(f'User {user.id} not found')
        user = user.model_copy(update={
            'username': current.username,
            'role': current.role,
            'candidate_id': current.candidate_id,
        })
        try:
            self.users.put_item(
                Item=user.to_item(),
                ConditionExpression=Attr('id').exists(),
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise NotFound(f'User {user.id} not found')
            raise
        return user

    def list_users(self, role=None):
        kwargs = {}
        if role:
            kwargs['FilterExpression'] = Attr('role').eq(role)
        users = [User.from_item(i) for i in scan_all(self.users, **kwargs)]
        return sorted(users, key=lambda u: u.created_at)

    # Tasks

    def get_task(self, task_id):
        item = self._get(self.tasks, {'id': task_id})
        return Task.from_item(item) if item else None

    def insert_task(self, task):
        actions = [
            self._put(config.TASKS_TABLE, task.to_item()),
            self._exists(config.USERS_TABLE, {'id': task.created_by}),
        ]
        failures = [
            Conflict('Task already exists'),
            NotFound(f'User {task.created_by} not found', field='createdBy'),
        ]
        if task.assigned_to_id is not None:
            actions.append(self._exists(config.USERS_TABLE, {'id': task.assigned_to_id}))
            failures.append(NotFound(f'User {task.assigned_to_id} not found', field='assignedToId'))
        self._transact(actions, failures)
        return task

    def update_task(self, task):
        actions = [self._put(config.TASKS_TABLE, task.to_item(), must_exist=True)]
        failures = [NotFound(f'Task {task.id} not found')]
        if task.assigned_to_id is not None:
            actions.append(self._exists(config.USERS_TABLE, {'id': task.assigned_to_id}))
            failures.append(NotFound(f'User {task.assigned_to_id} not found', field='assignedToId'))
        self._transact(actions, failures)
        return task

    def _task_submissions(self, task_id: str) -> List[Dict[str, Any]]:
        return query_all(
            self.submissions,
            IndexName=TASK_INDEX,
            KeyConditionExpression=Key('taskId').eq(task_id),
        )

    def _submission_deletes(self, task_id: str, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        actions = []
        for item in items:
            actions.append(self._delete(config.SUBMISSIONS_TABLE, {'id': item['id']}))
            actions.append(self._delete(
                config.UNIQUES_TABLE,
                {'uniqueKey': unique_key('submission', task_id, item['candidateId'])},
            ))
        return actions

    def _transact_chunked(self, actions: List[Dict[str, Any]]) -> None:
        for i in range(0, len(actions), MAX_TRANSACT_ITEMS):
            self._transact(actions[i:i + MAX_TRANSACT_ITEMS], [])

    def delete_task(self, task_id):
        """
        Delete a task, its submissions and their uniqueness guards.

        More than MAX_TRANSACT_ITEMS actions run as several transactions, so a
        large cascade is not atomic; the task goes last so an interrupted
        cascade can be retried. A submission whose insert commits between the
        read and the task delete is removed by a second pass over TaskIndex.
        The index is eventually consistent, so that pass can still miss a
        submission written in the same instant.
        """
        if self.get_task(task_id) is None:
            return 0

        doomed = self._task_submissions(task_id)
        actions = self._submission_deletes(task_id, doomed)
        # Task goes last so a partial failure never leaves orphaned submissions
        actions.append(self._delete(config.TASKS_TABLE, {'id': task_id}))

        if len(actions) > MAX_TRANSACT_ITEMS:
            logger.warning(f"Deleting task {task_id} with {len(doomed)} submissions in several transactions")
        self._transact_chunked(actions)

        # Inserts check the task exists, so nothing new can arrive after this point
        doomed_ids = {item['id'] for item in doomed}
        stragglers = [i for i in self._task_submissions(task_id) if i['id'] not in doomed_ids]
        if stragglers:
            logger.warning(f"Removing {len(stragglers)} submissions written during delete of task {task_id}")
            self._transact_chunked(self._submission_deletes(task_id, stragglers))

        removed = len(doomed) + len(stragglers)
        logger.info(f"Deleted task {task_id} and {removed} submissions")
        return removed

    def list_tasks(self):
        return [Task.from_item(i) for i in scan_all(self.tasks)]

    # Submissions

    def get_submission(self, submission_id):
        item = self._get(self.submissions, {'id': submission_id})
        return Submission.from_item(item) if item else None

    def find_submission(self, task_id, candidate_id):
        submission_id = self._owner_of(unique_key('submission', task_id, candidate_id))
        return self.get_submission(submission_id) if submission_id else None

    def insert_submission(self, submission):
        actions = [
            self._guard(unique_key('submission', submission.task_id, submission.candidate_id), submission.id),
            self._exists(config.TASKS_TABLE, {'id': submission.task_id}),
            self._exists(config.USERS_TABLE, {'id': submission.candidate_id}),
            self._put(config.SUBMISSIONS_TABLE, submission.to_item()),
        ]
        failures = [
            Conflict('A submission for this task already exists', field='taskId'),
            NotFound(f'Task {submission.task_id} not found', field='taskId'),
            NotFound(f'User {submission.candidate_id} not found', field='candidateId'),
            Conflict('Submission already exists'),
        ]
        self._transact(actions, failures)
        return submission

    def update_submission(self, submission):
        try:
            self.submissions.put_item(
                Item=submission.to_item(),
                ConditionExpression=Attr('id').exists(),
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise NotFound(f'Submission {submission.id} not found')
            raise
        return submission

    def list_submissions(self, task_id=None, candidate_id=None):
        if task_id:
            kwargs = {
                'IndexName': TASK_INDEX,
                'KeyConditionExpression': Key('taskId').eq(task_id),
            }
            if candidate_id:
                kwargs['FilterExpression'] = Attr('candidateId').eq(candidate_id)
            items = query_all(self.submissions, **kwargs)
        elif candidate_id:
            items = query_all(
                self.submissions,
                IndexName=CANDIDATE_INDEX,
                KeyConditionExpression=Key('candidateId').eq(candidate_id),
            )
        else:
            items = scan_all(self.submissions)
        return [Submission.from_item(i) for i in items]

    # Attendance

    def insert_attendance(self, record):
        actions = [
            self._exists(config.USERS_TABLE, {'id': record.user_id}),
            self._put(config.ATTENDANCE_TABLE, record.to_item()),
        ]
        failures = [
            NotFound(f'User {record.user_id} not found', field='userId'),
            Conflict('Attendance record already exists'),
        ]
        if record.task_id is not None:
            actions.append(self._exists(config.TASKS_TABLE, {'id': record.task_id}))
            failures.append(NotFound(f'Task {record.task_id} not found', field='taskId'))
        self._transact(actions, failures)
        return record

    def list_attendance(self, user_id=None, task_id=None):
        task_filter = Attr('taskId').eq(task_id) if task_id else None
        if user_id:
            kwargs = {
                'IndexName': USER_INDEX,
                'KeyConditionExpression': Key('userId').eq(user_id),
            }
            if task_filter is not None:
                kwargs['FilterExpression'] = task_filter
            items = query_all(self.attendance, **kwargs)
        elif task_filter is not None:
            items = scan_all(self.attendance, FilterExpression=task_filter)
        else:
            items = scan_all(self.attendance)
        return [Attendance.from_item(i) for i in items]
