"""
Archive Sync Client - CLI Mode Module

Runs one sync of the remote archive into the object store: connects to the
archive, the object store and the upload server, reconciles every update
file and reports the outcome counters.

Author: Archive Sync Project
"""

import sys
import logging
from pathlib import Path
from datetime import datetime
from typing import Any, Dict, Optional

from archive_sync.object_storage import ObjectStorageManager, CreateS3Client
from archive_sync.client.api import UploadAPI, IdentityTokenSource, normalize_upload_url
from archive_sync.client.exceptions import (
    ArchiveError,
    ArchiveSyncAPIError,
    ArchiveSyncAuthError,
    FatalSyncError
)
from archive_sync.client.managers import ConfigManager, ArchiveManager, parse_archive_locator
from archive_sync.client.operations import SyncOperations


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_AUTH_ERROR = 3


def setup_cli_logging(config_manager: ConfigManager, log_dir: Optional[Path] = None) -> Path:
    """
    Setup logging for CLI mode with timestamped log file.

    Creates log file with format: archive-sync-YYYY-MM-DD-HH-MM-SS.log
    in a "logs" subdirectory of the current directory.

    Args:
        config_manager: ConfigManager instance for log settings
        log_dir: Optional log directory override

    Returns:
        Path to the created log file
    """
    log_level = config_manager.get("log_level", "INFO")

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_filename = f"archive-sync-{timestamp}.log"

    # Create logs subdirectory if it doesn't exist
    log_dir = log_dir or Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / log_filename

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)  # Also output to console
        ]
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Archive Sync CLI - Log file: {log_file}")
    logger.info(f"Log level: {log_level}")

    return log_file


def cleanup_old_logs(config_manager: ConfigManager, current_log: Path):
    """
    Delete log files older than retention period.

    Args:
        config_manager: ConfigManager instance for retention settings
        current_log: Path to current log file (don't delete this)
    """
    logger = logging.getLogger(__name__)
    retention_days = config_manager.get("log_retention_days", 30)

    if retention_days <= 0:
        return  # Retention disabled

    log_dir = current_log.parent
    cutoff_time = datetime.now().timestamp() - (retention_days * 86400)

    deleted_count = 0
    for log_file in log_dir.glob("archive-sync-*.log"):
        if log_file == current_log:
            continue

        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                deleted_count += 1
        except OSError as e:
            logger.warning(f"Failed to delete old log file {log_file}: {e}")

    if deleted_count > 0:
        logger.info(f"Deleted {deleted_count} old log file(s)")


def report_metrics(metrics: Dict[str, int]):
    """
    Print the outcome counters of a run.

    Args:
        metrics: Counters keyed by outcome name
    """
    print("Metrics for file sync activity:")
    for name, count in metrics.items():
        print(f"{name}: {count}")


def run_cli_sync(config_file: Optional[str] = None,
                 overrides: Optional[Dict[str, Any]] = None) -> int:
    """
    Execute one archive sync.

    Process:
    1. Load configuration and apply command-line overrides
    2. Setup logging to timestamped file
    3. Connect to the archive, the object store and the upload server
    4. Walk and reconcile the archive
    5. Close connections, report counters and return an exit code

    Args:
        config_file: Optional path to config.json
        overrides: Configuration values for this run only

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    config_mgr = ConfigManager(config_file)
    config_mgr.load_config()
    config_mgr.apply_overrides(overrides or {})

    log_file = setup_cli_logging(config_mgr)
    logger = logging.getLogger(__name__)
    cleanup_old_logs(config_mgr, log_file)

    missing = config_mgr.missing_required()
    if missing:
        logger.error(f"Set {' and '.join(missing)}, or there is nothing to do")
        return EXIT_CONFIG_ERROR

    try:
        host, port, root = parse_archive_locator(config_mgr.get("archive"))
    except ValueError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    logger.info("=" * 60)
    logger.info(f"Starting Archive Sync: ftp://{host}:{port}{root} -> {config_mgr.get('bucket')}")
    logger.info("=" * 60)

    archive = None
    storage = None
    api_client = None
    sync_ops = None

    try:
        try:
            upload_url = config_mgr.get("upload_url")
            _, audience = normalize_upload_url(upload_url)
            token_source = IdentityTokenSource(
                audience,
                credentials_file=config_mgr.get("credentials_file")
            )
            api_client = UploadAPI(
                upload_url,
                token_source,
                verify_ssl=config_mgr.get("verify_ssl", True),
                timeout=config_mgr.get("upload_timeout", 300)
            )
        except ValueError as e:
            logger.error(f"Invalid upload service address: {e}")
            return EXIT_CONFIG_ERROR
        except ArchiveSyncAuthError as e:
            logger.error(f"failed to create upload client: {e}")
            return EXIT_AUTH_ERROR

        username, password = config_mgr.get_archive_credentials()
        archive = ArchiveManager(
            host, port,
            username=username,
            password=password,
            timeout=config_mgr.get("archive_timeout", 60)
        )
        try:
            archive.connect()
        except ArchiveError as e:
            logger.error(f"failed to create the client: {e}")
            return EXIT_FAILURE

        storage = ObjectStorageManager(
            config_mgr.get("bucket"),
            CreateS3Client(config_mgr.get("storage_endpoint_url"), config_mgr.get("storage_region"))
        )

        sync_ops = SyncOperations(
            api_client,
            archive,
            storage,
            max_archive_errors=config_mgr.get("max_archive_errors", 50)
        )

        # Start the archive walk, then evaluate each file it sends
        sync_ops.mirror(root)

        if sync_ops.stopped_on_failure:
            logger.error("Reconciliation stopped after an upload failure")
        logger.info("Ending transmission/comparison.")
        return EXIT_SUCCESS

    except FatalSyncError as e:
        logger.error(f"Fatal error while syncing {e.path or root}: {e}")
        return EXIT_FAILURE

    except ArchiveSyncAPIError as e:
        logger.error(f"API Error: {e}")
        return EXIT_FAILURE

    except KeyboardInterrupt:
        logger.warning("Sync cancelled by user (Ctrl+C)")
        return EXIT_FAILURE

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return EXIT_FAILURE

    finally:
        # All operations ended, close the external services
        if archive is not None:
            archive.quit()
        if storage is not None:
            storage.Close()
        if api_client is not None:
            api_client.close()
        if sync_ops is not None:
            report_metrics(sync_ops.metrics)
