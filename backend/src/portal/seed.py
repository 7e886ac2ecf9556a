"""
Demo data: one admin, one candidate and two tasks, created only when the
store has no admin yet.
"""
from datetime import timedelta
from typing import Any, Dict, Optional

from .config import config
from .logging import logger
from .models import Role, Task, TaskStatus, User, utc_now


def seed_defaults(portal) -> Optional[Dict[str, Any]]:
    """
    Populate an empty store.

    Args:
        portal: the Portal whose store is seeded

    Returns:
        Summary of what was created, or None if an admin already exists
    """
    store = portal.store
    if store.list_users(Role.ADMIN):
        return None

    logger.info("Seeding database...")
    users = portal.users
    admin = store.insert_user(User(
        username='admin',
        password_hash=users.create_password_hash(config.SEED_ADMIN_PASSWORD),
        role=Role.ADMIN,
        full_name='System Admin',
    ))
    candidate = store.insert_user(User(
        username='candidate',
        password_hash=users.create_password_hash(config.SEED_CANDIDATE_PASSWORD),
        role=Role.CANDIDATE,
        candidate_id=f"{config.CANDIDATE_ID_PREFIX}001",
        full_name='John Candidate',
    ))

    now = utc_now()
    onboarding = store.insert_task(Task(
        title='Complete Onboarding',
        description='Please fill out the onboarding form and upload your resume.',
        deadline=now + timedelta(days=7),
        assigned_to_id=candidate.id,
        status=TaskStatus.ACTIVE,
        created_by=admin.id,
    ))
    challenge = store.insert_task(Task(
        title='System Design Challenge',
        description='Design a scalable system for a URL shortener.',
        deadline=now + timedelta(days=3),
        assigned_to_id=None,
        status=TaskStatus.ACTIVE,
        created_by=admin.id,
    ))
    logger.info("Database seeded!")

    return {
        'adminId': admin.id,
        'candidateId': candidate.id,
        'taskIds': [onboarding.id, challenge.id],
    }
