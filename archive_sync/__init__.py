"""
Archive Sync

Mirrors update files from a remote FTP archive into an object store bucket
and serves the upload endpoint that validates and stores them.
"""

__version__ = "1.0.0"
