"""
Request schemas validated at the handler boundary.

Each schema matches one operation's JSON body. Unknown fields are rejected
so that identity fields cannot be smuggled into profile or task updates.
"""
import base64
import binascii
from datetime import date, datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import Role


class RequestSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='forbid',
    )

    def provided(self) -> dict:
        """Fields the client actually sent, keyed by Python name."""
        return self.model_dump(exclude_unset=True)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Auth / users

class RegisterRequest(RequestSchema):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=4)
    full_name: str = Field(..., min_length=1)
    role: Literal['admin', 'candidate'] = Role.CANDIDATE
    candidate_id: Optional[str] = None
    mobile_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    profile_photo: Optional[str] = None

    @model_validator(mode='after')
    def _check_password(self):
        if self.password == self.username:
            raise ValueError('Password is too close to the username')
        if self.role == Role.ADMIN and self.candidate_id:
            raise ValueError('Only candidates carry a candidate id')
        return self


class LoginRequest(RequestSchema):
    username: str
    password: str


class UpdateProfileRequest(RequestSchema):
    full_name: Optional[str] = Field(None, min_length=1)
    mobile_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    profile_photo: Optional[str] = None

    @model_validator(mode='after')
    def _full_name_not_null(self):
        if 'full_name' in self.model_fields_set and self.full_name is None:
            raise ValueError('fullName cannot be null')
        return self


# Tasks

class CreateTaskRequest(RequestSchema):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    deadline: datetime
    assigned_to_id: Optional[str] = None

    @field_validator('deadline')
    @classmethod
    def _deadline_in_future(cls, value: datetime) -> datetime:
        value = _as_utc(value)
        if value <= datetime.now(timezone.utc):
            raise ValueError('Deadline must be in the future')
        return value


class UpdateTaskRequest(RequestSchema):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    deadline: Optional[datetime] = None
    assigned_to_id: Optional[str] = None
    status: Optional[Literal['active', 'archived']] = None

    @field_validator('deadline')
    @classmethod
    def _deadline_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None

    @model_validator(mode='after')
    def _no_null_required_fields(self):
        # assignedToId may be cleared with null; the rest may not
        for name in ('title', 'description', 'deadline', 'status'):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f'{to_camel(name)} cannot be null')
        return self


# Submissions

class FileUpload(RequestSchema):
    name: str = Field(..., min_length=1)
    content_type: str = 'application/octet-stream'
    data: str = Field(..., description='Base64 encoded file contents')

    def decode(self) -> bytes:
        # Data URLs carry a "data:<type>;base64," prefix
        return base64.b64decode(self.data.split(',')[-1])

    @field_validator('data')
    @classmethod
    def _decodable(cls, value: str) -> str:
        try:
            decoded = base64.b64decode(value.split(',')[-1], validate=True)
        except (binascii.Error, ValueError):
            raise ValueError('File data is not valid base64')
        if not decoded:
            raise ValueError('File is empty')
        return value


class CreateSubmissionRequest(RequestSchema):
    task_id: str = Field(..., min_length=1)
    content: Optional[str] = None
    file: Optional[FileUpload] = None


class ReviewSubmissionRequest(RequestSchema):
    status: Literal['approved', 'rejected']
    feedback: Optional[str] = None
    score: Optional[int] = Field(None, ge=0, le=100)


# Attendance

class AttendanceCaptureRequest(RequestSchema):
    task_id: Optional[str] = None
    photo: Optional[FileUpload] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    device_details: Optional[str] = None

