"""
Archive Sync - Checksums

Content fingerprints shared by the sync client and the upload server.
Both sides must produce byte-identical digests for the same content, so
this module is the only place a checksum is computed.
"""

import hashlib
from typing import Optional


def CalculateChecksum(data: bytes) -> str:
    """
    Calculate the MD5 checksum of raw content

    MD5 is what object stores report for single-part objects, which lets the
    client compare archive content against the bucket without downloading it.

    Args:
        data: Raw file content

    Returns:
        str: Lowercase hex-encoded MD5 digest
    """
    return hashlib.md5(data).hexdigest()


def NormalizeChecksum(value: Optional[str]) -> str:
    """
    Normalize a checksum reported by an object store (ETag style)

    Strips surrounding quotes and a weak-validator prefix and lowercases the
    result. None becomes the empty string.

    Args:
        value: Raw checksum or ETag value

    Returns:
        str: Normalized hex digest
    """
    if not value:
        return ""
    normalized = value.strip()
    if normalized.startswith("W/"):
        normalized = normalized[2:]
    return normalized.strip('"').strip("'").lower()
