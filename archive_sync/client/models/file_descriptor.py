"""
Archive Sync Client - File Descriptor Model

Author: Archive Sync Project
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class FileDescriptor:
    """
    A candidate archive file found by the walker.

    Attributes:
        path: Full archive path without the leading separator, e.g.
              bgpdata/route-views4/bgpdata/2022.01/UPDATES/updates.20220109.1830.bz2
        checksum: Hex MD5 of the archive content, filled in during reconciliation
    """
    path: str
    checksum: Optional[str] = None

    def __post_init__(self):
        if not self.path:
            raise ValueError("FileDescriptor path must not be empty")
