"""
Archive Sync Server - Upload Processing

This module handles uploaded archive files:
- Request validation (required fields, content integrity)
- Per-project dispatch
- Storing content and project metadata in the object store

The caller's checksum is only trusted as a claim: the content is always
re-hashed here before anything is written.
"""

import logging

from fastapi import status

from archive_sync.checksum import CalculateChecksum
from archive_sync.object_storage import ObjectStorageManager, ObjectStorageError
from archive_sync.projects import Project
from archive_sync.server.models.api import FileUploadRequest

logger = logging.getLogger(__name__)


class UploadRejectedError(Exception):
    """
    Raised when an upload cannot be accepted

    Attributes:
        status_code: HTTP status to report to the caller
        message: Description of the failure
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


# ==================== Validation ====================

def ValidateUploadRequest(request: FileUploadRequest) -> None:
    """
    Validate an upload before any side effect

    Checks, in order:
    1. content, project and filename are all present
    2. the recomputed checksum of content equals the supplied md5_sum

    Args:
        request: Upload to validate

    Raises:
        UploadRejectedError: 400 for missing fields, 422 for checksum mismatch
    """
    if len(request.content) < 1 or request.project == Project.UNKNOWN or len(request.filename) < 1:
        raise UploadRejectedError(
            status.HTTP_400_BAD_REQUEST,
            "base requirements for FileRequest unmet"
        )

    calculated = CalculateChecksum(request.content)
    if calculated != (request.md5_sum or "").strip().lower():
        raise UploadRejectedError(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            f"checksum failure req({request.md5_sum!r}) != calc({calculated!r})"
        )


# ==================== Storage ====================

def HandleDataFile(storage: ObjectStorageManager, project: Project, filename: str, content: bytes) -> None:
    """
    Store a data file and record its project

    The object is written first and the metadata attached afterwards. If the
    metadata update fails the object stays stored without project metadata;
    the next upload of the same key repeats both steps.

    Args:
        storage: Object storage manager
        project: Owning project
        filename: Object key
        content: File bytes

    Raises:
        UploadRejectedError: 500 if either step fails
    """
    try:
        storage.StoreObject(filename, content)
        storage.SetProjectMetadata(filename, project)
    except ObjectStorageError as e:
        logger.error(f"Failed storing {filename} ({project.value}): {e}")
        raise UploadRejectedError(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    logger.info(f"Finished processing datafile: {filename}")


def ProcessFileUpload(storage: ObjectStorageManager, request: FileUploadRequest) -> None:
    """
    Validate an upload and handle it according to its project

    Args:
        storage: Object storage manager
        request: Upload to process

    Raises:
        UploadRejectedError: If validation fails, the project has no storage
            action, or storage fails
    """
    ValidateUploadRequest(request)

    project = request.project
    if project in (Project.ROUTEVIEWS, Project.RPKI_RARC):
        HandleDataFile(storage, project, request.filename, request.content)
    elif project == Project.RIPE_RIS:
        # Known project without a storage action yet
        raise UploadRejectedError(
            status.HTTP_501_NOT_IMPLEMENTED,
            f"not Implemented storing: {request.filename}"
        )
    else:
        raise UploadRejectedError(
            status.HTTP_400_BAD_REQUEST,
            f"unsupported project {project.value} for: {request.filename}"
        )
