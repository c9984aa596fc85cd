"""
Archive Sync Client - API Package

This package contains the upload API client and identity token handling.
"""

from .upload_api import UploadAPI, normalize_upload_url
from .identity_token import IdentityTokenSource

__all__ = ['UploadAPI', 'normalize_upload_url', 'IdentityTokenSource']
