"""
Archive Sync Server - Settings

Server configuration loaded from the environment. Command-line flags in
server.py override individual values.
"""

import os
import secrets
from typing import Optional

from pydantic import BaseModel


DEFAULT_PORT = 9876
DEFAULT_BUCKET = "routeviews-archives"

# Max upload message size: 50MiB
MAX_MESSAGE_SIZE = 50 * 1024 * 1024


class ServerSettings(BaseModel):
    """Runtime settings for the upload server"""
    port: int = DEFAULT_PORT
    bucket: str = DEFAULT_BUCKET
    auth_secret: str
    audience: Optional[str] = None
    storage_endpoint_url: Optional[str] = None
    storage_region: Optional[str] = None
    max_message_size: int = MAX_MESSAGE_SIZE


def LoadServerSettings() -> ServerSettings:
    """
    Build server settings from environment variables

    Environment:
        PORT: Listen port (default 9876)
        ARCHIVE_SYNC_BUCKET: Destination bucket
        ARCHIVE_SYNC_AUTH_SECRET: Identity token signing secret. When unset a
            random secret is generated, so only tokens issued by this process
            validate.
        ARCHIVE_SYNC_AUDIENCE: Expected token audience (unchecked if unset)
        ARCHIVE_SYNC_STORAGE_ENDPOINT: Object store endpoint URL
        ARCHIVE_SYNC_STORAGE_REGION: Object store region

    Returns:
        ServerSettings: Loaded settings

    Raises:
        ValueError: If PORT is not a number
    """
    port = os.environ.get("PORT") or str(DEFAULT_PORT)
    if not port.isdigit():
        raise ValueError(f"PORT must be a port number, got {port!r}")

    return ServerSettings(
        port=int(port),
        bucket=os.environ.get("ARCHIVE_SYNC_BUCKET") or DEFAULT_BUCKET,
        auth_secret=os.environ.get("ARCHIVE_SYNC_AUTH_SECRET") or secrets.token_urlsafe(32),
        audience=os.environ.get("ARCHIVE_SYNC_AUDIENCE") or None,
        storage_endpoint_url=os.environ.get("ARCHIVE_SYNC_STORAGE_ENDPOINT") or None,
        storage_region=os.environ.get("ARCHIVE_SYNC_STORAGE_REGION") or None,
    )


# Global settings instance
# Loaded on first use; replaced in server.py main() when command-line overrides are given
settings: Optional[ServerSettings] = None


def GetSettings() -> ServerSettings:
    """
    Get the global settings, loading them from the environment on first use

    Returns:
        ServerSettings: Current settings
    """
    global settings
    if settings is None:
        settings = LoadServerSettings()
    return settings
