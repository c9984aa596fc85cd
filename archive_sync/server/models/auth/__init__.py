"""
Archive Sync Server - Auth Models Package

This package contains Pydantic models for authentication.
"""

from archive_sync.server.models.auth.token_data import TokenData

__all__ = [
    'TokenData',
]
