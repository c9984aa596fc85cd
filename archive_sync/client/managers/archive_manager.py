"""
Archive Sync Client - Archive Manager

Handles the connection to the remote FTP archive: connecting and logging in,
listing directories and retrieving file content.

The walker thread and the reconciliation thread share one control
connection, so every FTP command is serialized through a lock.

Author: Archive Sync Project
"""

import ftplib
import io
import logging
import posixpath
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlsplit

from archive_sync.client.exceptions import ArchiveError

# Configure logging
logger = logging.getLogger(__name__)


DEFAULT_FTP_PORT = 21
# Fixed connect timeout for the control connection
CONNECT_TIMEOUT = 5
# ftplib decodes replies and listings as strict UTF-8
FTP_ERRORS = ftplib.all_errors + (UnicodeDecodeError,)


@dataclass
class ArchiveEntry:
    """One entry of a remote directory listing."""
    name: str
    path: str
    is_dir: bool
    is_file: bool


def parse_archive_locator(locator: str) -> Tuple[str, int, str]:
    """
    Split an archive locator into host, port and root directory.

    Accepts "ftp://host/dir", "ftp://host:2121/dir/" or "host/dir".

    Args:
        locator: Site URL to mirror content from

    Returns:
        Tuple of (host, port, root) where root starts with "/"

    Raises:
        ValueError: If no host can be found
    """
    value = (locator or "").strip()
    if "://" not in value:
        value = "ftp://" + value

    parts = urlsplit(value)
    if not parts.hostname:
        raise ValueError(f"Archive locator has no host: {locator!r}")

    root = "/" + parts.path.strip("/")
    return parts.hostname, parts.port or DEFAULT_FTP_PORT, root


def _parse_list_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Parse one unix-style LIST line into (name, kind).

    kind is "dir", "file" or "other"; None is returned for lines that are not
    entries (e.g. "total 12").
    """
    fields = line.split(None, 8)
    if len(fields) < 9:
        return None

    name = fields[8]
    mode = fields[0][:1]
    if mode == "d":
        return name, "dir"
    if mode == "-":
        return name, "file"
    return name, "other"


class ArchiveManager:
    """
    Manages the FTP connection to the remote archive.

    Responsibilities:
    - Connect and log in with the configured credentials
    - List directory entries (MLSD, falling back to LIST)
    - Retrieve complete file content
    - Serialize commands from the walker and reconciliation threads
    """

    def __init__(self, host: str, port: int = DEFAULT_FTP_PORT,
                 username: str = "ftp", password: str = "mirror@",
                 timeout: float = 60,
                 ftp_factory: Callable[[], ftplib.FTP] = ftplib.FTP):
        """
        Initialize archive manager.

        Args:
            host: Archive host name
            port: FTP control port
            username: FTP login user
            password: FTP login password
            timeout: Idle timeout in seconds for commands and transfers after connecting
            ftp_factory: Callable creating an unconnected FTP object
        """
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self.ftp_factory = ftp_factory
        self.ftp: Optional[ftplib.FTP] = None
        self.use_mlsd = True
        self._lock = threading.Lock()

    @property
    def site(self) -> str:
        return f"{self.host}:{self.port}"

    def connect(self):
        """
        Connect to the archive and log in.

        Raises:
            ArchiveError: If the connection or login fails
        """
        ftp = self.ftp_factory()
        try:
            ftp.connect(self.host, self.port, timeout=CONNECT_TIMEOUT)
        except FTP_ERRORS as e:
            raise ArchiveError(f"failed to connect to the ftp site({self.site}): {e}")

        try:
            ftp.login(self.username, self.password)
        except FTP_ERRORS as e:
            ftp.close()
            raise ArchiveError(f"failed to login to site({self.site}) as user {self.username}: {e}")

        # Connect timeout only covers the handshake; later commands use the idle timeout
        ftp.timeout = self.timeout
        if ftp.sock is not None:
            ftp.sock.settimeout(self.timeout)

        self.ftp = ftp
        logger.info(f"Connected to archive {self.site} as {self.username}")

    def _require_connection(self) -> ftplib.FTP:
        if self.ftp is None:
            raise ArchiveError("Not connected - call connect() first")
        return self.ftp

    def list_directory(self, path: str) -> List[ArchiveEntry]:
        """
        List the entries of a remote directory.

        The listing is read completely before the lock is released so a
        retrieval never interleaves with a half-read listing.

        Args:
            path: Absolute remote directory path

        Returns:
            Entries in server listing order, without "." and ".."

        Raises:
            ArchiveError: If the listing fails
        """
        with self._lock:
            ftp = self._require_connection()
            try:
                if self.use_mlsd:
                    try:
                        return self._list_mlsd(ftp, path)
                    except ftplib.error_perm as e:
                        if not str(e).startswith(("500", "502")):
                            raise
                        logger.info(f"Archive {self.site} does not support MLSD, using LIST")
                        self.use_mlsd = False
                return self._list_unix(ftp, path)
            except FTP_ERRORS as e:
                raise ArchiveError(f"failed to list {path}: {e}")

    def _list_mlsd(self, ftp: ftplib.FTP, path: str) -> List[ArchiveEntry]:
        entries = []
        for name, facts in list(ftp.mlsd(path, facts=["type"])):
            kind = facts.get("type", "").lower()
            if kind in ("cdir", "pdir") or name in (".", ".."):
                continue
            entries.append(ArchiveEntry(
                name=name,
                path=posixpath.join(path, name),
                is_dir=kind == "dir",
                is_file=kind == "file"
            ))
        return entries

    def _list_unix(self, ftp: ftplib.FTP, path: str) -> List[ArchiveEntry]:
        lines: List[str] = []
        ftp.retrlines(f"LIST {path}", lines.append)

        entries = []
        for line in lines:
            parsed = _parse_list_line(line)
            if parsed is None:
                continue
            name, kind = parsed
            if name in (".", ".."):
                continue
            entries.append(ArchiveEntry(
                name=name,
                path=posixpath.join(path, name),
                is_dir=kind == "dir",
                is_file=kind == "file"
            ))
        return entries

    def retrieve(self, path: str) -> bytes:
        """
        Retrieve the full content of a remote file.

        Args:
            path: Remote file path (leading "/" optional)

        Returns:
            File content

        Raises:
            ArchiveError: If the retrieval fails
        """
        remote_path = "/" + path.lstrip("/")
        buffer = io.BytesIO()
        with self._lock:
            ftp = self._require_connection()
            try:
                ftp.retrbinary(f"RETR {remote_path}", buffer.write)
            except FTP_ERRORS as e:
                raise ArchiveError(f"failed to RETR the path {remote_path}: {e}")
        return buffer.getvalue()

    def quit(self):
        """Politely close the control connection."""
        with self._lock:
            if self.ftp is None:
                return
            try:
                self.ftp.quit()
            except FTP_ERRORS as e:
                logger.warning(f"Error closing archive connection to {self.site}: {e}")
                self.ftp.close()
            finally:
                self.ftp = None
        logger.debug(f"Archive connection to {self.site} closed")
