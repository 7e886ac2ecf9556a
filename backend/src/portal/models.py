"""
Data models and status constants for the task portal.
Based on the lifecycles: Task active → archived, Submission pending → approved/rejected.
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Role:
    """User roles."""
    ADMIN = 'admin'
    CANDIDATE = 'candidate'

    ALL = (ADMIN, CANDIDATE)


class TaskStatus:
    """Task lifecycle statuses."""
    ACTIVE = 'active'
    ARCHIVED = 'archived'

    ALL = (ACTIVE, ARCHIVED)


class SubmissionStatus:
    """Submission review statuses."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    ALL = (PENDING, APPROVED, REJECTED)
    REVIEWED = (APPROVED, REJECTED)


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_dynamo(value: Any) -> Any:
    # boto3 refuses floats
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_dynamo(v) for v in value]
    return value


class Entity(BaseModel):
    """Base for stored records: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_id)

    def to_item(self) -> Dict[str, Any]:
        """Serialize for DynamoDB. None fields are dropped."""
        return _to_dynamo(self.model_dump(mode='json', by_alias=True, exclude_none=True))

    @classmethod
    def from_item(cls, item: Dict[str, Any]):
        return cls.model_validate(item)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True)


class User(Entity):
    username: str
    password_hash: str
    role: str = Role.CANDIDATE
    candidate_id: Optional[str] = None
    full_name: str
    mobile_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    profile_photo: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def public(self) -> Dict[str, Any]:
        """JSON view without the password hash."""
        return self.model_dump(mode='json', by_alias=True, exclude={'password_hash'})


class Task(Entity):
    title: str
    description: str
    assigned_to_id: Optional[str] = None
    deadline: datetime
    status: str = TaskStatus.ACTIVE
    created_by: str
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_for_everyone(self) -> bool:
        return self.assigned_to_id is None


class Submission(Entity):
    task_id: str
    candidate_id: str
    content: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    submitted_at: datetime = Field(default_factory=utc_now)
    status: str = SubmissionStatus.PENDING
    feedback: Optional[str] = None
    score: Optional[int] = None


class Attendance(Entity):
    user_id: str
    task_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    photo_url: str
    latitude: float
    longitude: float
    ip_address: str
    device_details: str


class Identity(BaseModel):
    """The caller as resolved by the identity context."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
