"""
Archive Sync - Object Storage Manager

This module wraps the S3-compatible object store shared by the sync client
and the upload server:
- Checksum lookup for an object (client side, before deciding to transfer)
- Object writes and project metadata updates (server side)

Keys are remote archive paths with the leading separator stripped.
"""

import base64
import hashlib
import logging
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from archive_sync.checksum import NormalizeChecksum
from archive_sync.projects import Project, PROJECT_METADATA_KEY

logger = logging.getLogger(__name__)


# Error codes S3-compatible stores use for a missing object
NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")

CONTENT_TYPE = "application/octet-stream"


class ObjectStorageError(Exception):
    """Raised when the object store cannot complete a request."""
    pass


class ObjectNotFoundError(ObjectStorageError):
    """Raised when the requested object does not exist."""
    pass


def CreateS3Client(endpoint_url: Optional[str] = None, region: Optional[str] = None,
                   connect_timeout: int = 5):
    """
    Create an S3 client with a fixed connect timeout and standard retries

    Args:
        endpoint_url: Optional endpoint for non-AWS stores (GCS interop, MinIO)
        region: Optional region name
        connect_timeout: Connect timeout in seconds

    Returns:
        botocore S3 client
    """
    config = BotoConfig(
        connect_timeout=connect_timeout,
        read_timeout=60,
        retries={"max_attempts": 3, "mode": "standard"},
    )
    kwargs = {"config": config}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    if region:
        kwargs["region_name"] = region
    return boto3.client("s3", **kwargs)


def ObjectKey(path: str) -> str:
    """Convert a remote archive path to an object key."""
    return path.lstrip("/")


class ObjectStorageManager:
    """
    Manages access to one bucket of the object store
    """

    def __init__(self, bucket: str, client=None):
        """
        Initialize object storage manager

        Args:
            bucket: Bucket name to read and write
            client: boto3 S3 client (created with defaults if None)
        """
        if not bucket:
            raise ValueError("A bucket name is required")

        self.bucket = bucket
        self.client = client if client is not None else CreateS3Client()

    def GetObjectChecksum(self, path: str) -> str:
        """
        Get the MD5 checksum of a stored object

        Args:
            path: Remote path or object key

        Returns:
            str: Hex MD5 of the stored object

        Raises:
            ObjectNotFoundError: If the object does not exist
            ObjectStorageError: For any other failure
        """
        key = ObjectKey(path)
        try:
            head = self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"object doesn't exist: {self.bucket}/{key}")
            raise ObjectStorageError(f"failed to get attrs for obj {self.bucket}/{key}: {e}")
        except BotoCoreError as e:
            raise ObjectStorageError(f"failed to get attrs for obj {self.bucket}/{key}: {e}")

        return NormalizeChecksum(head.get("ETag"))

    def StoreObject(self, path: str, content: bytes) -> None:
        """
        Store content under a key, overwriting any existing object

        The store verifies the upload against the Content-MD5 header.

        Args:
            path: Remote path or object key
            content: Object bytes

        Raises:
            ObjectStorageError: If the write fails
        """
        key = ObjectKey(path)
        content_md5 = base64.b64encode(hashlib.md5(content).digest()).decode("ascii")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentMD5=content_md5,
                ContentType=CONTENT_TYPE,
            )
        except (ClientError, BotoCoreError) as e:
            raise ObjectStorageError(f"failed copying content to destination: {self.bucket}/{key}: {e}")

        logger.info(f"Stored object: {self.bucket}/{key} ({len(content)} bytes)")

    def SetProjectMetadata(self, path: str, project: Project) -> None:
        """
        Record the owning project in the metadata of an existing object

        S3 metadata is immutable, so the object is copied onto itself with
        replaced metadata. The object must exist.

        Args:
            path: Remote path or object key
            project: Project tag to record

        Raises:
            ObjectStorageError: If the metadata update fails
        """
        key = ObjectKey(path)
        try:
            self.client.copy_object(
                Bucket=self.bucket,
                Key=key,
                CopySource={"Bucket": self.bucket, "Key": key},
                Metadata={PROJECT_METADATA_KEY: project.value},
                MetadataDirective="REPLACE",
                ContentType=CONTENT_TYPE,
            )
        except (ClientError, BotoCoreError) as e:
            raise ObjectStorageError(
                f"failed to set metadata '{PROJECT_METADATA_KEY}:{project.value}' on {self.bucket}/{key}: {e}"
            )

        logger.info(f"Set metadata for object: {self.bucket}/{key}")

    def Close(self) -> None:
        """Release the underlying HTTP connections."""
        close = getattr(self.client, "close", None)
        if close is not None:
            close()
