"""
Wires the store, blob store and managers together.

Lambda containers reuse one Portal across invocations; tests install their own
with set_portal().
"""
from typing import Optional

from .attendance import AttendanceRecorder
from .config import config
from .s3_utils import S3BlobStore
from .store import EntityStore, MemoryEntityStore
from .submissions import SubmissionManager
from .tasks import TaskManager
from .users import UserManager


class Portal:
    """Every core operation, bound to one entity store and one blob store."""

    def __init__(self, store: EntityStore, blobs: S3BlobStore):
        self.store = store
        self.blobs = blobs
        self.users = UserManager(store)
        self.tasks = TaskManager(store)
        self.submissions = SubmissionManager(store, blobs)
        self.attendance = AttendanceRecorder(store, blobs)


def build_store(backend: Optional[str] = None) -> EntityStore:
    backend = backend or config.STORE_BACKEND
    if backend == 'memory':
        return MemoryEntityStore()
    if backend == 'dynamodb':
        from .dynamo import DynamoEntityStore
        return DynamoEntityStore()
    raise ValueError(f"Unknown STORE_BACKEND {backend!r}")


_portal: Optional[Portal] = None


def get_portal() -> Portal:
    global _portal
    if _portal is None:
        _portal = Portal(build_store(), S3BlobStore())
    return _portal


def set_portal(portal: Optional[Portal]) -> None:
    global _portal
    _portal = portal
