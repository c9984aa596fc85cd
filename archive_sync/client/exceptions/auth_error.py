"""
Archive Sync Client - Authentication Error Exception

Exception raised for authentication-related errors.

Author: Archive Sync Project
"""

from .api_error import ArchiveSyncAPIError


class ArchiveSyncAuthError(ArchiveSyncAPIError):
    """Exception for authentication errors."""
    pass
