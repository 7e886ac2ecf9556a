"""
S3 utility functions for media operations.
Stores submission files and attendance photos, and generates presigned URLs
for private bucket access.
"""
import os
import uuid
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from .config import config
from .logging import logger


class S3BlobStore:
    """Blob store over a private S3 bucket.

    Stored objects are referenced by their canonical bucket URL; readers get
    a presigned URL via presign().
    """

    def __init__(self, bucket_name: Optional[str] = None, s3_client=None):
        self.bucket = bucket_name or config.MEDIA_BUCKET
        # Custom signature version for presigned URLs
        self.s3_client = s3_client or boto3.client(
            's3',
            region_name=config.AWS_REGION,
            config=BotoConfig(signature_version='s3v4')
        )

    @property
    def bucket_url(self) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/"

    def store(self, data: bytes, suggested_name: str,
              content_type: str = 'application/octet-stream') -> str:
        """
        Upload bytes under a fresh key.

        Args:
            data: Raw object contents (never inspected)
            suggested_name: Original filename, used only for its extension
            content_type: MIME type recorded on the object

        Returns:
            Canonical URL of the stored object
        """
        if not self.bucket:
            raise RuntimeError('MEDIA_BUCKET is not configured')

        extension = os.path.splitext(suggested_name or '')[1].lower()
        s3_key = f"{config.MEDIA_PREFIX}{uuid.uuid4()}{extension}"
        self.s3_client.put_object(
            Bucket=self.bucket,
            Key=s3_key,
            Body=data,
            ContentType=content_type,
        )
        logger.info(f"Stored {len(data)} bytes at {s3_key}")
        return self.bucket_url + s3_key

    def key_for(self, url_or_key: str) -> Optional[str]:
        """Object key for one of our URLs, or None for external URLs."""
        if not url_or_key:
            return None
        if url_or_key.startswith(self.bucket_url):
            return url_or_key[len(self.bucket_url):]
        if url_or_key.startswith('http://') or url_or_key.startswith('https://'):
            return None
        return url_or_key

    def delete(self, url_or_key: str) -> None:
        """Remove an object we stored. External URLs are left alone."""
        s3_key = self.key_for(url_or_key)
        if not s3_key:
            return
        self.s3_client.delete_object(Bucket=self.bucket, Key=s3_key)
        logger.info(f"Deleted {s3_key}")

    def presign(self, url_or_key: str, expiration: Optional[int] = None) -> str:
        """
        Generate a presigned URL for S3 object download.

        Args:
            url_or_key: Canonical bucket URL or object key (e.g., 'uploads/uuid.jpg')
            expiration: URL expiration time in seconds

        Returns:
            Presigned URL string or the original value if it is not ours or signing fails
        """
        s3_key = self.key_for(url_or_key)
        if not s3_key or not self.bucket:
            return url_or_key

        try:
            return self.s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': self.bucket,
                    'Key': s3_key
                },
                ExpiresIn=expiration or config.PRESIGNED_URL_EXPIRATION
            )
        except ClientError as e:
            logger.error(f"Error generating presigned URL for {s3_key}: {e}")
            return url_or_key
