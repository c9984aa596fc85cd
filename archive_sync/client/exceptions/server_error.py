"""
Archive Sync Client - Server Error Exception

Exception raised for server-related errors.

Author: Archive Sync Project
"""

from .api_error import ArchiveSyncAPIError


class ArchiveSyncServerError(ArchiveSyncAPIError):
    """Exception for server errors and rejected uploads."""
    pass
