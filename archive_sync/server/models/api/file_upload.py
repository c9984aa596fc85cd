"""
Archive Sync Server - File Upload API Models

Models for the file upload endpoint.
"""

from enum import Enum

from pydantic import BaseModel

from archive_sync.projects import Project


class UploadStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


class FileUploadRequest(BaseModel):
    """
    A file upload as received from the multipart form

    Attributes:
        filename: Object key to store the content under
        content: File bytes
        md5_sum: Caller's hex MD5 of content
        project: Project the file belongs to
    """
    filename: str
    content: bytes
    md5_sum: str
    project: Project


class FileUploadResponse(BaseModel):
    """Response model for file uploads"""
    status: UploadStatus
    filename: str = ""
    message: str = ""
