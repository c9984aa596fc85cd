"""
Archive Sync Client - Fatal Sync Error Exceptions

Exceptions that end a sync run immediately. The CLI reports them and exits;
a restarted run re-derives all decisions from live checksums.

Author: Archive Sync Project
"""


class FatalSyncError(Exception):
    """
    Base exception for conditions that make the rest of the run unusable.

    Attributes:
        path: Archive path being reconciled when the failure happened
    """

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class DestinationUnavailableError(FatalSyncError):
    """Object store failed with anything other than 'object absent'."""
    pass


class ArchiveErrorBudgetExceededError(FatalSyncError):
    """Too many archive retrieval failures during one run."""
    pass
