"""
Archive Sync Client - Upload API Module

Handles communication with the upload server: sends changed archive files
with their checksum and project, authenticated with an identity token.

Author: Archive Sync Project
"""

import json
import logging
import posixpath
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlsplit

import requests

from archive_sync.client.exceptions import (
    ArchiveSyncAuthError,
    ArchiveSyncServerError
)
from archive_sync.projects import Project

# Configure logging
logger = logging.getLogger(__name__)


# Max message size set to 50MiB
MAX_MESSAGE_SIZE = 50 * 1024 * 1024
CONNECT_TIMEOUT = 5


def normalize_upload_url(upload_url: str) -> Tuple[str, str]:
    """
    Turn an upload service address into a base URL and token audience.

    Accepts "host:port" (HTTPS assumed) or a full URL.

    Args:
        upload_url: Upload service address

    Returns:
        Tuple of (base_url, audience), e.g.
        ("https://upload.example.org:443", "https://upload.example.org")

    Raises:
        ValueError: If no host can be found
    """
    value = (upload_url or "").strip().rstrip("/")
    if "://" not in value:
        value = "https://" + value

    parts = urlsplit(value)
    if not parts.hostname:
        raise ValueError(f"Upload URL has no host: {upload_url!r}")

    return value, f"https://{parts.hostname}"


class UploadAPI:
    """
    API client for the upload server.

    Responsibilities:
    - Send file uploads with checksum and project
    - Attach the identity token to every request
    - Enforce the maximum message size before sending
    - Translate HTTP failures into client exceptions
    """

    def __init__(self, upload_url: str, token_source, verify_ssl: bool = True,
                 timeout: float = 300):
        """
        Initialize API client.

        Args:
            upload_url: Upload service address ("host:port" or URL)
            token_source: IdentityTokenSource providing bearer tokens
            verify_ssl: Whether to verify TLS certificates against the trust store
            timeout: Read timeout in seconds for an upload request
        """
        self.base_url, self.audience = normalize_upload_url(upload_url)
        self.token_source = token_source
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        # Use session for connection pooling to avoid TLS handshake overhead on each upload
        self.session = requests.Session()
        logger.debug(f"Initialized upload client for {self.base_url} (SSL verification: {self.verify_ssl})")

    def close(self):
        """
        Close the session and release resources.
        """
        if self.session:
            self.session.close()
            logger.debug("Upload client session closed")

    def file_upload(self, filename: str, content: bytes, md5_sum: str,
                    project: Project = Project.ROUTEVIEWS) -> Dict[str, Any]:
        """
        Upload one file to the server.

        Args:
            filename: Object key (archive path without leading separator)
            content: File content
            md5_sum: Hex MD5 of content
            project: Project the file belongs to

        Returns:
            Response data with status SUCCESS

        Raises:
            ArchiveSyncAuthError: If the token is missing or rejected
            ArchiveSyncServerError: If the upload is rejected, fails, or is too large
        """
        if len(content) > MAX_MESSAGE_SIZE:
            raise ArchiveSyncServerError(
                f"Upload of {filename} is {len(content)} bytes, above the {MAX_MESSAGE_SIZE} byte limit"
            )

        headers = {"Authorization": f"Bearer {self.token_source.token()}"}
        files = {"content": (posixpath.basename(filename) or filename, content, "application/octet-stream")}
        data = {
            "filename": filename,
            "md5_sum": md5_sum,
            "project": project.value
        }
        url = f"{self.base_url}/upload"
        logger.debug(f"API request: POST /upload ({filename}, {len(content)} bytes)")

        try:
            response = self.session.post(
                url,
                headers=headers,
                files=files,
                data=data,
                verify=self.verify_ssl,
                timeout=(CONNECT_TIMEOUT, self.timeout)
            )
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Cannot connect to upload server at {self.base_url}: {e}")
            raise ArchiveSyncServerError(f"Cannot connect to upload server at {self.base_url}")
        except requests.exceptions.Timeout:
            logger.error("Upload request timed out")
            raise ArchiveSyncServerError(f"Upload of {filename} timed out")
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {str(e)}")
            raise ArchiveSyncServerError(f"Request error: {str(e)}")

        return self._handle_response(response, filename)

    def _handle_response(self, response: requests.Response, filename: str) -> Dict[str, Any]:
        """
        Check an upload response.

        Raises:
            ArchiveSyncAuthError: On 401/403
            ArchiveSyncServerError: On any other failure status or a FAIL body
        """
        body: Optional[Dict[str, Any]] = None
        try:
            parsed = response.json()
            if isinstance(parsed, dict):
                body = parsed
        except (json.JSONDecodeError, ValueError):
            body = None

        message = response.text
        if body:
            message = body.get("message") or body.get("detail") or message

        if response.status_code in (401, 403):
            logger.warning(f"Upload server rejected credentials: {message}")
            raise ArchiveSyncAuthError(f"Authentication failed with status {response.status_code}: {message}")

        if response.status_code >= 400:
            logger.error(f"Upload of {filename} failed with status {response.status_code}: {message}")
            raise ArchiveSyncServerError(f"Upload failed with status {response.status_code}: {message}")

        if not body or body.get("status") != "SUCCESS":
            raise ArchiveSyncServerError(f"Upload of {filename} did not succeed: {message}")

        return body
