"""
Archive Sync Client - Archive Walker

Walks the remote archive tree depth-first and hands each update file to the
reconciliation loop.

Filter rules:
- directories ending in "RIBS" (bulk routing table snapshots) are never entered
- regular files whose name starts with "updates" are emitted
- everything else is ignored

Author: Archive Sync Project
"""

import logging
import threading
from typing import Iterator, Optional

from archive_sync.client.exceptions import ArchiveError
from archive_sync.client.models import FileDescriptor
from archive_sync.client.operations.handoff import RendezvousChannel

# Configure logging
logger = logging.getLogger(__name__)


SKIP_DIR_SUFFIX = "RIBS"
UPDATES_PREFIX = "updates"


class ArchiveWalker:
    """
    Producer side of the sync pipeline.

    Responsibilities:
    - Traverse the archive from a root directory, depth-first
    - Apply the directory skip and update file rules
    - Send matching files through the rendezvous channel
    - Close the channel when the walk ends, successfully or not
    """

    def __init__(self, archive, channel: Optional[RendezvousChannel] = None):
        """
        Initialize archive walker.

        Args:
            archive: ArchiveManager (anything with list_directory(path))
            channel: Channel to send descriptors through (needed for run/start)
        """
        self.archive = archive
        self.channel = channel
        self.error: Optional[ArchiveError] = None
        self.sent = 0
        self._thread: Optional[threading.Thread] = None

    def walk(self, root: str) -> Iterator[FileDescriptor]:
        """
        Lazily yield update files below root.

        A listing failure ends the sequence: the error is recorded on
        self.error and logged, nothing after it is visited.

        Args:
            root: Absolute remote directory to start from

        Yields:
            FileDescriptor for each matching file, in depth-first order
        """
        self.error = None
        try:
            yield from self._walk_directory(root)
        except ArchiveError as e:
            self.error = e
            logger.error(f"Walk of {root} stopped, closing the walk: {e}")

    def _walk_directory(self, path: str) -> Iterator[FileDescriptor]:
        for entry in self.archive.list_directory(path):
            logger.debug(f"Eval Path: {entry.path}")
            if entry.is_dir:
                if entry.name.endswith(SKIP_DIR_SUFFIX):
                    logger.info(f"Skipping RIBS directory: {entry.path}")
                    continue
                yield from self._walk_directory(entry.path)
            elif entry.is_file and entry.name.startswith(UPDATES_PREFIX):
                yield FileDescriptor(path=entry.path.lstrip("/"))

    def run(self, root: str):
        """
        Walk the archive and send every match through the channel.

        Always closes the channel on return. Stops early if the consumer
        closes the channel.

        Args:
            root: Absolute remote directory to start from
        """
        if self.channel is None:
            raise ValueError("ArchiveWalker.run requires a channel")

        try:
            for descriptor in self.walk(root):
                logger.info(f"Sending file for eval: {descriptor.path}")
                if not self.channel.send(descriptor):
                    logger.info("Channel closed by consumer, stopping walk")
                    return
                self.sent += 1
        finally:
            self.channel.close()
            logger.info(f"Walk of {root} finished, {self.sent} files sent")

    def start(self, root: str) -> threading.Thread:
        """
        Run the walk on a background thread.

        Args:
            root: Absolute remote directory to start from

        Returns:
            The started thread
        """
        self._thread = threading.Thread(target=self.run, args=(root,), name="archive-walker", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None):
        """Wait for the walker thread to finish."""
        if self._thread is not None:
            self._thread.join(timeout)
