"""
Archive Sync Server - API Models Package

This package contains Pydantic models for all API endpoints.
"""

from archive_sync.server.models.api.file_upload import (
    UploadStatus,
    FileUploadRequest,
    FileUploadResponse
)

__all__ = [
    'UploadStatus',
    'FileUploadRequest',
    'FileUploadResponse',
]
