"""
Archive Sync Client - Configuration Manager

Handles loading and saving client configuration from/to config.json.
Manages OS credential store integration for the archive password.

Author: Archive Sync Project
"""

import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any

# Configure logging
logger = logging.getLogger(__name__)


KEYRING_SERVICE = "ArchiveSync"
DEFAULT_ARCHIVE_PASSWORD = "mirror@"

# Default configuration values
DEFAULT_CONFIG = {
    "archive": None,  # Site URL to mirror content from: ftp://site/dir
    "bucket": None,  # Bucket to mirror content into
    "archive_user": "ftp",
    "archive_password": None,  # None means OS credential store, then the anonymous default
    "archive_timeout": 60,  # Idle timeout (seconds) for FTP commands after connecting
    "upload_url": "https://localhost:9876",
    "upload_timeout": 300,
    "verify_ssl": True,
    "credentials_file": None,  # Identity token / signing credentials for the upload server
    "storage_endpoint_url": None,
    "storage_region": None,
    "max_archive_errors": 50,
    "log_level": "INFO",
    "log_retention_days": 30
}

# Keys that must be set before a sync can run
REQUIRED_KEYS = ("archive", "bucket")


class ConfigManager:
    """
    Manages client configuration and credentials.

    Responsibilities:
    - Load/save config.json (working directory unless a path is given)
    - Apply command-line overrides for a single run
    - Store/retrieve the archive password from the OS credential store via keyring
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to the config file (default ./config.json)
        """
        self.config_file = Path(config_file) if config_file else Path.cwd() / "config.json"
        self.config: Dict[str, Any] = {}

    def load_config(self) -> Dict[str, Any]:
        """
        Load configuration from config.json.
        Creates default config if file doesn't exist.

        Returns:
            Configuration dictionary
        """
        if self.config_file.exists():
            logger.debug(f"Loading configuration from {self.config_file}")
            with open(self.config_file, 'r') as f:
                self.config = json.load(f)
            # Merge with defaults for any missing keys
            for key, value in DEFAULT_CONFIG.items():
                if key not in self.config:
                    self.config[key] = value
            logger.info("Configuration loaded successfully")
        else:
            logger.info(f"Configuration file not found, creating default at {self.config_file}")
            self.config = DEFAULT_CONFIG.copy()
            self.save_config()

        return self.config

    def save_config(self):
        """Save current configuration to config.json."""
        logger.debug(f"Saving configuration to {self.config_file}")
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            json.dump(self.config, f, indent=2)
        logger.debug("Configuration saved successfully")

    def get(self, key: str, default=None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found or unset

        Returns:
            Configuration value
        """
        value = self.config.get(key)
        return default if value is None else value

    def set(self, key: str, value: Any):
        """
        Set configuration value and save to file.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.config[key] = value
        self.save_config()

    def apply_overrides(self, overrides: Dict[str, Any]):
        """
        Apply values for this run only (not saved). None values are ignored.

        Args:
            overrides: Configuration values, typically from command-line flags
        """
        for key, value in overrides.items():
            if value is not None:
                self.config[key] = value

    def missing_required(self) -> list:
        """
        Get required keys that have no value.

        Returns:
            List of missing key names
        """
        return [key for key in REQUIRED_KEYS if not self.config.get(key)]

    def store_archive_password(self, password: str):
        """
        Store the archive password in the OS credential store.

        Args:
            password: Password to store for the configured archive user
        """
        import keyring

        username = self.get("archive_user", "ftp")
        logger.info(f"Storing archive password for user: {username}")
        keyring.set_password(KEYRING_SERVICE, username, password)
        logger.debug("Credentials stored successfully")

    def get_archive_credentials(self) -> tuple[str, str]:
        """
        Get the archive username and password.

        Password precedence: config/flag value, OS credential store, then
        the anonymous FTP default.

        Returns:
            Tuple of (username, password)
        """
        import keyring
        from keyring.errors import KeyringError

        username = self.get("archive_user", "ftp")

        password = self.get("archive_password")
        if password:
            return (username, password)

        try:
            password = keyring.get_password(KEYRING_SERVICE, username)
        except KeyringError as e:
            logger.warning(f"OS credential store unavailable: {e}")
            password = None

        if not password:
            logger.debug(f"No stored password for archive user {username}, using anonymous default")
            password = DEFAULT_ARCHIVE_PASSWORD

        return (username, password)
