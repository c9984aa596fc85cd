"""
Archive Sync Server - Status Endpoints

This module contains status-related endpoints.
"""

from datetime import datetime, timezone
from fastapi import APIRouter

from archive_sync import __version__
from archive_sync.server import settings as server_settings


# Create router instance
router = APIRouter()


# ==================== Health Check Endpoint ====================

@router.get("/health", tags=["Status"])
async def health_check():
    """
    Health check endpoint to verify server is running

    Returns:
        dict: Server status information
    """
    return {
        "status": "healthy",
        "service": "Archive Sync Server",
        "version": __version__,
        "bucket": server_settings.GetSettings().bucket,
        "timestamp_utc": datetime.now(timezone.utc).isoformat()
    }
