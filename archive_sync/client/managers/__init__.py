"""
Archive Sync Client - Managers Package

Contains manager classes for configuration and the remote archive connection.

Author: Archive Sync Project
"""

from .config_manager import ConfigManager, DEFAULT_CONFIG
from .archive_manager import ArchiveManager, ArchiveEntry, parse_archive_locator

__all__ = [
    'ConfigManager',
    'DEFAULT_CONFIG',
    'ArchiveManager',
    'ArchiveEntry',
    'parse_archive_locator'
]
