"""
Archive Sync Client - API Error Exception

Base exception class for all upload API errors.

Author: Archive Sync Project
"""


class ArchiveSyncAPIError(Exception):
    """Base exception for API errors."""
    pass
