"""
Archive Sync Client - Operations Package

This package contains the archive walker, the rendezvous handoff and the
reconciliation loop.
"""

from .handoff import RendezvousChannel
from .archive_walker import ArchiveWalker
from .sync_operations import SyncOperations

__all__ = ['RendezvousChannel', 'ArchiveWalker', 'SyncOperations']
