"""
Archive Sync Client - Sync Outcome Model

Contains the SyncOutcome enum used to count per-file results of a run.

Author: Archive Sync Project
"""

from enum import Enum
from typing import Dict


class SyncOutcome(Enum):
    """
    Result of reconciling one file.

    States:
    - SYNCED: Content differed and was uploaded
    - SKIPPED: Archive and object store checksums matched
    - FAILED: Upload was attempted and failed
    """
    SYNCED = "synced"
    SKIPPED = "skipped"
    FAILED = "failed"


def new_outcome_counters() -> Dict[str, int]:
    """
    Create a zeroed counter for every outcome.

    Returns:
        Dict keyed by outcome value
    """
    return {outcome.value: 0 for outcome in SyncOutcome}
