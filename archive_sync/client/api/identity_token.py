"""
Archive Sync Client - Identity Token Source

Supplies the bearer identity token sent with every upload. The token is
scoped to the upload service's address (its audience).

Token sources, in order:
1. An explicit token, or the ARCHIVE_SYNC_ID_TOKEN environment variable
2. A credentials file containing either:
   - a raw token
   - JSON {"token": "..."}
   - JSON {"client_id": "...", "secret_key": "..."}, from which a signed
     token is minted for the audience and renewed before it expires

Author: Archive Sync Project
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Optional

from jose import jwt

from archive_sync.client.exceptions import ArchiveSyncAuthError

# Configure logging
logger = logging.getLogger(__name__)


TOKEN_ENV_VAR = "ARCHIVE_SYNC_ID_TOKEN"
ALGORITHM = "HS256"
TOKEN_LIFETIME_SECONDS = 3600
# Renew minted tokens this long before they expire
RENEW_MARGIN_SECONDS = 60


class IdentityTokenSource:
    """
    Provides identity tokens for the upload service.
    """

    def __init__(self, audience: str, credentials_file: Optional[str] = None,
                 token: Optional[str] = None):
        """
        Initialize token source.

        Args:
            audience: Audience the token must be scoped to (e.g. "https://upload.example.org")
            credentials_file: Optional path to a credentials file
            token: Optional pre-issued token (takes precedence)
        """
        self.audience = audience
        self.credentials_file = credentials_file
        self._static_token = token or os.environ.get(TOKEN_ENV_VAR) or None
        self._client_id: Optional[str] = None
        self._secret_key: Optional[str] = None
        self._minted: Optional[str] = None
        self._minted_expiry = 0.0

        if not self._static_token and credentials_file:
            self._load_credentials(Path(credentials_file))

    def _load_credentials(self, path: Path):
        """
        Read the credentials file.

        Raises:
            ArchiveSyncAuthError: If the file is missing or unusable
        """
        try:
            raw = path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise ArchiveSyncAuthError(f"unable to read credentials file {path}: {e}")

        if not raw:
            raise ArchiveSyncAuthError(f"credentials file {path} is empty")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            # Not JSON - treat the content as a raw token
            self._static_token = raw
            logger.debug(f"Loaded raw identity token from {path}")
            return

        if not isinstance(data, dict):
            raise ArchiveSyncAuthError(f"credentials file {path} has an unexpected format")

        if data.get("token"):
            self._static_token = data["token"]
            logger.debug(f"Loaded identity token from {path}")
        elif data.get("client_id") and data.get("secret_key"):
            self._client_id = data["client_id"]
            self._secret_key = data["secret_key"]
            logger.debug(f"Loaded signing credentials for client '{self._client_id}' from {path}")
        else:
            raise ArchiveSyncAuthError(
                f"credentials file {path} must contain 'token' or 'client_id' and 'secret_key'"
            )

    def token(self) -> str:
        """
        Get a valid identity token.

        Returns:
            Bearer token string

        Raises:
            ArchiveSyncAuthError: If no token source is configured
        """
        if self._static_token:
            return self._static_token

        if self._secret_key:
            now = time.time()
            if self._minted is None or now >= self._minted_expiry - RENEW_MARGIN_SECONDS:
                self._minted = self._mint(now)
                self._minted_expiry = now + TOKEN_LIFETIME_SECONDS
            return self._minted

        raise ArchiveSyncAuthError(
            f"No identity token available - set {TOKEN_ENV_VAR} or provide a credentials file"
        )

    def _mint(self, now: float) -> str:
        claims = {
            "sub": self._client_id,
            "aud": self.audience,
            "iat": int(now),
            "exp": int(now) + TOKEN_LIFETIME_SECONDS,
        }
        logger.debug(f"Minting identity token for audience {self.audience}")
        return jwt.encode(claims, self._secret_key, algorithm=ALGORITHM)
