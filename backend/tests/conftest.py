"""
Shared fixtures: an in-memory store, a mocked S3 blob store and seeded users.
"""
import json
import os
import sys
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

# Add src to path for import
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from portal.models import Identity, Role, User  # noqa: E402
from portal.s3_utils import S3BlobStore  # noqa: E402
from portal.schemas import CreateTaskRequest  # noqa: E402
from portal.service import Portal, set_portal  # noqa: E402
from portal.store import MemoryEntityStore  # noqa: E402

BUCKET_URL = 'https://media-bucket.s3.amazonaws.com/'


@pytest.fixture
def store():
    return MemoryEntityStore()


@pytest.fixture
def blobs():
    """S3BlobStore double: store() hands out sequential keys, presign() prefixes 'signed:'."""
    mock = MagicMock(spec=S3BlobStore)
    counter = {'n': 0}

    def _store(data, suggested_name, content_type='application/octet-stream'):
        counter['n'] += 1
        return f"{BUCKET_URL}uploads/{counter['n']}-{suggested_name}"

    mock.store.side_effect = _store
    mock.presign.side_effect = lambda url, expiration=None: f"signed:{url}"
    return mock


@pytest.fixture
def portal(store, blobs):
    portal = Portal(store, blobs)
    set_portal(portal)
    yield portal
    set_portal(None)


def add_user(portal, username, role=Role.CANDIDATE, password='secret-pw', candidate_id=None):
    user = portal.store.insert_user(User(
        username=username,
        password_hash=portal.users.create_password_hash(password),
        role=role,
        candidate_id=candidate_id,
        full_name=username.title(),
    ))
    return Identity(id=user.id, role=user.role)


@pytest.fixture
def admin(portal):
    return add_user(portal, 'admin', Role.ADMIN)


@pytest.fixture
def candidate(portal):
    return add_user(portal, 'carol', candidate_id='C-001')


@pytest.fixture
def other_candidate(portal):
    return add_user(portal, 'dave', candidate_id='C-002')


def in_days(days):
    return datetime.now(timezone.utc) + timedelta(days=days)


def make_task(portal, admin, title='Onboarding', assigned_to_id=None, days=7):
    return portal.tasks.create(admin, CreateTaskRequest(
        title=title,
        description=f'{title} description',
        deadline=in_days(days),
        assigned_to_id=assigned_to_id,
    ))


def api_event(identity=None, body=None, path=None, query=None, source_ip='203.0.113.7',
              user_agent='pytest-agent', claims=None):
    """
    Minimal API Gateway proxy event with Cognito claims for the given identity.

    Explicit claims replace the ones derived from the identity.
    """
    event = {
        'httpMethod': 'GET',
        'pathParameters': path,
        'queryStringParameters': query,
        'requestContext': {
            'identity': {'sourceIp': source_ip, 'userAgent': user_agent},
        },
        'body': json.dumps(body) if body is not None else None,
    }
    if claims is None and identity is not None:
        claims = {'sub': identity.id}
        if identity.role == Role.ADMIN:
            claims['cognito:groups'] = 'admin'
    if claims is not None:
        event['requestContext']['authorizer'] = {'claims': claims}
    return event


def response_body(response):
    return json.loads(response['body']) if response['body'] else None
