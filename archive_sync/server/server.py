"""
Archive Sync Server - Main FastAPI Application

This module contains the main FastAPI application for the Archive Sync server.
It exposes the upload endpoint used by sync clients to store archive files.
"""

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from datetime import datetime
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import uvicorn

from archive_sync import __version__
from archive_sync.object_storage import ObjectStorageManager, CreateS3Client
from archive_sync.server import settings as server_settings
from archive_sync.server import storage
from archive_sync.server.models.api import UploadStatus

logger = logging.getLogger(__name__)


def ConfigureLogging(level: int = logging.INFO) -> Path:
    """
    Configure logging to write to both console and a rotating file

    Args:
        level: Root log level

    Returns:
        Path: Log file path
    """
    # Create logs directory if it doesn't exist
    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    # Create log filename with timestamp
    log_filename = logs_dir / f"archive-sync-server-{datetime.now().strftime('%Y-%m-%d')}.log"

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            # Console handler
            logging.StreamHandler(),
            # File handler with rotation (max 10MB per file, keep 10 backup files)
            RotatingFileHandler(
                log_filename,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=10,
                encoding='utf-8'
            )
        ]
    )
    return log_filename


# ==================== Lifespan Events ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler for startup and shutdown
    Manages the shared object storage client
    """
    # Startup
    logger.info("Archive Sync Server starting up...")

    current = server_settings.GetSettings()
    created = False
    if storage.storage_manager is None:
        client = CreateS3Client(current.storage_endpoint_url, current.storage_region)
        storage.storage_manager = ObjectStorageManager(current.bucket, client)
        created = True

    logger.info(f"Object storage initialized for bucket: {storage.storage_manager.bucket}")
    if not current.audience:
        logger.warning("ARCHIVE_SYNC_AUDIENCE not set - token audience will not be checked")

    logger.info("Server startup complete")

    yield

    # Shutdown
    logger.info("Archive Sync Server shutting down...")
    if created:
        storage.storage_manager.Close()
        storage.storage_manager = None
    logger.info("Shutdown complete")


# ==================== FastAPI Application ====================

app = FastAPI(
    title="Archive Sync Server",
    description="Upload service storing validated archive files in object storage",
    version=__version__,
    lifespan=lifespan
)


# ==================== Message Size Middleware ====================

@app.middleware("http")
async def enforce_message_size(request: Request, call_next):
    """
    Reject requests whose declared body exceeds the maximum message size
    before the body is read
    """
    max_size = server_settings.GetSettings().max_message_size
    content_length = request.headers.get("content-length")
    # Multipart framing adds a little on top of the content itself
    if content_length and content_length.isdigit() and int(content_length) > max_size + 64 * 1024:
        logger.warning(f"Rejected {request.url.path}: body of {content_length} bytes exceeds {max_size}")
        return JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={
                "status": UploadStatus.FAIL.value,
                "filename": "",
                "message": f"message exceeds maximum size of {max_size} bytes"
            }
        )
    return await call_next(request)


# ==================== Include Routers ====================

from archive_sync.server.routes import status as status_routes, files  # noqa: E402

app.include_router(status_routes.router)
app.include_router(files.router)


# ==================== Main Entry Point ====================

def main() -> int:
    """
    Run the server using uvicorn

    The port comes from $PORT (default 9876) unless --port is given.
    """
    parser = argparse.ArgumentParser(description='Archive Sync - upload server')
    parser.add_argument('--bucket', help='Object storage bucket name (overrides ARCHIVE_SYNC_BUCKET)')
    parser.add_argument('--port', type=int, help='Listen port (overrides PORT)')
    parser.add_argument('--host', default='0.0.0.0', help='Listen address (default all addresses)')
    args = parser.parse_args()

    ConfigureLogging()

    try:
        current = server_settings.GetSettings()
    except ValueError as e:
        logger.error(f"Invalid server configuration: {e}")
        return 2

    overrides = {}
    if args.bucket:
        overrides['bucket'] = args.bucket
    if args.port:
        overrides['port'] = args.port
    if overrides:
        current = server_settings.ServerSettings(**{**current.__dict__, **overrides})
        server_settings.settings = current

    port = current.port
    logger.info(f"Service will listen on port: {port}")

    # NOTE: this listens on all IP addresses by default, caution when testing.
    uvicorn.run(
        app,
        host=args.host,
        port=port,
        reload=False,
        log_level="info"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
