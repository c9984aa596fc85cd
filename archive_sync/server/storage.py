"""
Archive Sync Server - Storage Module

This module exports the global storage_manager instance for use across the application.
"""

from archive_sync.object_storage import ObjectStorageManager

# Global object storage manager instance
# Initialized in server.py lifespan handler
storage_manager: ObjectStorageManager = None


def GetStorageManager() -> ObjectStorageManager:
    """
    FastAPI dependency returning the shared storage manager

    Raises:
        RuntimeError: If the server has not initialized storage
    """
    if storage_manager is None:
        raise RuntimeError("Object storage has not been initialized")
    return storage_manager
