"""
Archive Sync Client - Exceptions Package

Contains all exception classes for the Archive Sync client.

Author: Archive Sync Project
"""

from .api_error import ArchiveSyncAPIError
from .auth_error import ArchiveSyncAuthError
from .server_error import ArchiveSyncServerError
from .archive_error import ArchiveError
from .fatal_sync_error import (
    FatalSyncError,
    DestinationUnavailableError,
    ArchiveErrorBudgetExceededError
)

__all__ = [
    'ArchiveSyncAPIError',
    'ArchiveSyncAuthError',
    'ArchiveSyncServerError',
    'ArchiveError',
    'FatalSyncError',
    'DestinationUnavailableError',
    'ArchiveErrorBudgetExceededError'
]
