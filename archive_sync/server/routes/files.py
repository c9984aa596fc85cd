"""
Archive Sync Server - File Upload Endpoint

This module contains the upload endpoint which accepts archive files,
re-validates their checksum and stores them with project metadata.
"""

import asyncio
import logging
from fastapi import APIRouter, Depends, File as FastAPIFile, UploadFile, Form, status
from fastapi.responses import JSONResponse

from archive_sync.object_storage import ObjectStorageManager
from archive_sync.projects import ParseProject
from archive_sync.server import settings as server_settings
from archive_sync.server.auth import GetCurrentCaller
from archive_sync.server.models.api import FileUploadRequest, FileUploadResponse, UploadStatus
from archive_sync.server.models.auth import TokenData
from archive_sync.server.storage import GetStorageManager
from archive_sync.server.uploads import ProcessFileUpload, UploadRejectedError


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


def FailureResponse(status_code: int, filename: str, message: str) -> JSONResponse:
    """Build a FAIL response body with the given HTTP status."""
    return JSONResponse(
        status_code=status_code,
        content={
            "status": UploadStatus.FAIL.value,
            "filename": filename,
            "message": message
        }
    )


# ==================== File Upload Endpoint ====================

@router.post("/upload", response_model=FileUploadResponse, tags=["Files"])
async def file_upload(
    content: UploadFile = FastAPIFile(..., description="File content"),
    filename: str = Form("", description="Object key for the file"),
    md5_sum: str = Form("", description="Hex MD5 checksum of the content"),
    project: str = Form("UNKNOWN", description="Project the file belongs to"),
    caller: TokenData = Depends(GetCurrentCaller),
    storage: ObjectStorageManager = Depends(GetStorageManager)
):
    """
    Accept a file upload and store it according to its project

    Requests must carry filename, checksum, content and project; if any of
    these is missing the request is rejected before anything is written.

    Args:
        content: File content (multipart/form-data)
        filename: Object key, the archive path without leading separator
        md5_sum: Caller's hex MD5 of content
        project: Project name (ROUTEVIEWS, RIPE_RIS, RPKI_RARC)
        caller: Authenticated caller (from identity token)
        storage: Shared object storage manager

    Returns:
        FileUploadResponse with SUCCESS, or a FAIL response with:
        400 for missing fields, 413 for oversized content, 422 for a checksum
        mismatch, 501 for projects without a storage action and 500 for
        storage failures
    """
    max_size = server_settings.GetSettings().max_message_size
    data = await content.read(max_size + 1)
    if len(data) > max_size:
        logger.warning(f"Caller '{caller.subject}' sent oversized upload for '{filename}'")
        return FailureResponse(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            filename,
            f"content exceeds maximum message size of {max_size} bytes"
        )

    request = FileUploadRequest(
        filename=filename,
        content=data,
        md5_sum=md5_sum,
        project=ParseProject(project)
    )

    try:
        # boto3 calls block; keep them off the event loop
        await asyncio.to_thread(ProcessFileUpload, storage, request)
    except UploadRejectedError as e:
        logger.error(f"Rejected upload '{filename}' from '{caller.subject}': {e.message}")
        return FailureResponse(e.status_code, filename, e.message)
    except Exception as e:
        logger.error(f"Error processing upload '{filename}': {str(e)}")
        return FailureResponse(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            filename,
            f"Failed to process upload: {str(e)}"
        )

    logger.info(
        f"Caller '{caller.subject}' uploaded '{filename}' "
        f"(project: {request.project.value}, size: {len(data)} bytes)"
    )

    return FileUploadResponse(
        status=UploadStatus.SUCCESS,
        filename=filename,
        message=""
    )
