"""
Archive Sync Client - Archive Error Exception

Exception raised when the remote FTP archive fails a request.

Author: Archive Sync Project
"""


class ArchiveError(Exception):
    """Exception for FTP connection, listing and retrieval failures."""
    pass
