"""
Archive Sync Client - Models Package

Contains data models and enumerations used by the client.

Author: Archive Sync Project
"""

from .file_descriptor import FileDescriptor
from .sync_outcome import SyncOutcome, new_outcome_counters

__all__ = [
    'FileDescriptor',
    'SyncOutcome',
    'new_outcome_counters'
]
