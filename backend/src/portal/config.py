"""
Configuration module for the portal core and Lambda handlers.
Loads all environment variables needed by the platform.
"""
import os


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # DynamoDB Tables
    USERS_TABLE = os.environ.get('USERS_TABLE', 'portal-users')
    TASKS_TABLE = os.environ.get('TASKS_TABLE', 'portal-tasks')
    SUBMISSIONS_TABLE = os.environ.get('SUBMISSIONS_TABLE', 'portal-submissions')
    ATTENDANCE_TABLE = os.environ.get('ATTENDANCE_TABLE', 'portal-attendance')
    UNIQUES_TABLE = os.environ.get('UNIQUES_TABLE', 'portal-uniques')

    # 'dynamodb' in deployed stacks, 'memory' for local runs
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'dynamodb')

    # S3 Buckets
    MEDIA_BUCKET = os.environ.get('MEDIA_BUCKET', '')
    MEDIA_PREFIX = os.environ.get('MEDIA_PREFIX', 'uploads/')
    PRESIGNED_URL_EXPIRATION = int(os.environ.get('PRESIGNED_URL_EXPIRATION', '3600'))

    # Identity
    ADMIN_GROUP = os.environ.get('ADMIN_GROUP', 'admin')
    CANDIDATE_ID_PREFIX = os.environ.get('CANDIDATE_ID_PREFIX', 'C-')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Demo data
    SEED_ADMIN_PASSWORD = os.environ.get('SEED_ADMIN_PASSWORD', 'admin123')
    SEED_CANDIDATE_PASSWORD = os.environ.get('SEED_CANDIDATE_PASSWORD', 'candidate123')


config = Config()
