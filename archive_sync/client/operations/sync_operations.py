"""
Archive Sync Client - Sync Operations Module

Implements the reconciliation loop: for each file found by the archive
walker, compare the archive checksum against the object store and upload
the file only when they differ.

Basic flow per file:
  1) get the object store checksum (absent object -> empty checksum)
  2) retrieve the file from the archive and checksum it
  3) equal checksums -> skip
  4) otherwise upload the archive content to the upload server

Author: Archive Sync Project
"""

import logging
from typing import Dict, Optional

from archive_sync.checksum import CalculateChecksum
from archive_sync.object_storage import ObjectNotFoundError, ObjectStorageError
from archive_sync.projects import Project
from archive_sync.client.exceptions import (
    ArchiveError,
    ArchiveSyncAPIError,
    DestinationUnavailableError,
    ArchiveErrorBudgetExceededError
)
from archive_sync.client.models import FileDescriptor, SyncOutcome, new_outcome_counters
from archive_sync.client.operations.handoff import RendezvousChannel
from archive_sync.client.operations.archive_walker import ArchiveWalker

# Configure logging
logger = logging.getLogger(__name__)


# Max archive retrieval errors before the run is abandoned
DEFAULT_MAX_ARCHIVE_ERRORS = 50
# How long to wait for the walker thread after the loop ends
WALKER_JOIN_TIMEOUT = 10


class SyncOperations:
    """
    Consumer side of the sync pipeline.

    Responsibilities:
    - Reconcile descriptors strictly in the order the walker sends them
    - Classify failures: absent object, unusable object store, archive
      retrieval failures (budgeted), upload failures (stop the run)
    - Count synced / skipped / failed outcomes for exit reporting
    """

    def __init__(self, api_client, archive, storage,
                 max_archive_errors: int = DEFAULT_MAX_ARCHIVE_ERRORS,
                 project: Project = Project.ROUTEVIEWS):
        """
        Initialize sync operations handler.

        Args:
            api_client: UploadAPI instance for the upload server
            archive: ArchiveManager instance for the remote archive
            storage: ObjectStorageManager for the destination bucket
            max_archive_errors: Archive retrieval failures tolerated per run
            project: Project tag sent with every upload
        """
        self.api = api_client
        self.archive = archive
        self.storage = storage
        self.max_archive_errors = max_archive_errors
        self.project = project
        self.metrics: Dict[str, int] = new_outcome_counters()
        self.archive_errors = 0
        self.stopped_on_failure = False

    def mirror(self, root: str) -> Dict[str, int]:
        """
        Walk the archive from root on a background thread and reconcile
        every file it sends.

        Args:
            root: Absolute archive directory to start from

        Returns:
            Outcome counters

        Raises:
            FatalSyncError: If the object store or the archive becomes unusable
        """
        channel = RendezvousChannel()
        walker = ArchiveWalker(self.archive, channel)
        walker.start(root)
        try:
            return self.reconcile(channel)
        finally:
            walker.join(WALKER_JOIN_TIMEOUT)
            if walker.error is not None:
                logger.error(f"Archive walk ended early: {walker.error}")

    def reconcile(self, channel: RendezvousChannel) -> Dict[str, int]:
        """
        Reconcile descriptors from the channel until it closes.

        The channel is closed on every exit path so the walker is released.

        Args:
            channel: Channel the walker sends descriptors through

        Returns:
            Outcome counters

        Raises:
            FatalSyncError: If the object store or the archive becomes unusable
        """
        self.stopped_on_failure = False
        try:
            for descriptor in channel:
                outcome = self.reconcile_file(descriptor)
                if outcome is None:
                    continue

                self.metrics[outcome.value] += 1
                if outcome == SyncOutcome.FAILED:
                    # An upload failure ends the run; remaining files wait for the next run
                    logger.error(f"Upload failed for {descriptor.path}, stopping reconciliation")
                    self.stopped_on_failure = True
                    break
            else:
                logger.info("Channel closed, reconciliation finished")
        finally:
            channel.close()

        return self.metrics

    def reconcile_file(self, descriptor: FileDescriptor) -> Optional[SyncOutcome]:
        """
        Decide whether one file needs a transfer and perform it.

        Args:
            descriptor: File to reconcile

        Returns:
            The file's outcome, or None if the archive retrieval failed
            within the error budget

        Raises:
            DestinationUnavailableError: Object store failed other than 'absent'
            ArchiveErrorBudgetExceededError: Retrieval failed with the budget used up
        """
        path = descriptor.path.lstrip("/")

        stored_sum = self._get_stored_checksum(path)

        try:
            content = self.archive.retrieve(path)
        except ArchiveError as e:
            if self.archive_errors < self.max_archive_errors:
                self.archive_errors += 1
                logger.info(f"error getting md5({path}): {e} ({self.archive_errors}/{self.max_archive_errors})")
                return None
            raise ArchiveErrorBudgetExceededError(
                f"failed to get archive md5 for file({path}) after {self.archive_errors} errors: {e}",
                path=path
            )

        descriptor.checksum = CalculateChecksum(content)

        if stored_sum == descriptor.checksum:
            logger.debug(f"Unchanged, skipping: {path}")
            return SyncOutcome.SKIPPED

        logger.info(f"Archiving file({path}) size({len(content)}) to cloud.")
        try:
            response = self.api.file_upload(
                filename=path,
                content=content,
                md5_sum=descriptor.checksum,
                project=self.project
            )
        except ArchiveSyncAPIError as e:
            logger.error(f"failed uploading({path}) to upload service: {e}")
            return SyncOutcome.FAILED

        logger.info(f"File upload status: {response.get('status')}")
        return SyncOutcome.SYNCED

    def _get_stored_checksum(self, path: str) -> str:
        """
        Get the object store checksum for a path.

        Returns:
            Hex MD5, or "" if the object does not exist

        Raises:
            DestinationUnavailableError: For any failure other than 'absent'
        """
        try:
            return self.storage.GetObjectChecksum(path)
        except ObjectNotFoundError:
            # Not stored yet, needs an upload
            return ""
        except ObjectStorageError as e:
            raise DestinationUnavailableError(f"failed to get cloud md5 for file({path}): {e}", path=path)
