"""
Shared fixtures for Archive Sync tests

Provides in-memory stand-ins for the three external systems: the FTP
archive, the object store and the upload server.
"""

import ftplib
import posixpath
from typing import Dict, List, Optional, Tuple

import pytest

from archive_sync.checksum import CalculateChecksum
from archive_sync.object_storage import ObjectNotFoundError, ObjectStorageError, ObjectKey
from archive_sync.projects import Project, PROJECT_METADATA_KEY
from archive_sync.client.exceptions import ArchiveSyncServerError
from archive_sync.client.managers import ArchiveManager
from archive_sync.server.models.api import FileUploadRequest
from archive_sync.server.uploads import ProcessFileUpload, UploadRejectedError


class FakeFTP:
    """Minimal ftplib.FTP replacement serving an in-memory directory tree."""

    def __init__(self):
        self.dirs: Dict[str, List[Tuple[str, str]]] = {"/": []}
        self.files: Dict[str, bytes] = {}
        self.listed: List[str] = []
        self.retrieved: List[str] = []
        self.fail_list: Dict[str, Exception] = {}
        self.fail_retrieve: Dict[str, Exception] = {}
        self.mlsd_supported = True
        self.login_error: Optional[Exception] = None
        self.connected = False
        self.sock = None
        self.timeout = None

    # Tree building

    def add_dir(self, path: str):
        path = "/" + path.strip("/")
        if path in self.dirs:
            return
        parent, name = posixpath.split(path)
        self.add_dir(parent)
        self.dirs[parent].append((name, "dir"))
        self.dirs[path] = []

    def add_file(self, path: str, content: bytes):
        path = "/" + path.strip("/")
        parent, name = posixpath.split(path)
        self.add_dir(parent)
        self.dirs[parent].append((name, "file"))
        self.files[path] = content

    # ftplib.FTP interface

    def connect(self, host, port, timeout=None):
        self.connected = True
        self.timeout = timeout
        return "220 ready"

    def login(self, user, passwd):
        if self.login_error is not None:
            raise self.login_error
        return "230 logged in"

    def mlsd(self, path, facts=None):
        if not self.mlsd_supported:
            raise ftplib.error_perm("500 MLSD not understood")
        entries = self._entries(path)
        for name, kind in entries:
            yield name, {"type": kind}

    def retrlines(self, cmd, callback):
        path = cmd[len("LIST "):]
        for name, kind in self._entries(path):
            mode = "drwxr-xr-x" if kind == "dir" else "-rw-r--r--"
            callback(f"{mode}    2 ftp      ftp          4096 Jan 09 18:30 {name}")
        return "226 done"

    def _entries(self, path):
        self.listed.append(path)
        if path in self.fail_list:
            raise self.fail_list[path]
        if path not in self.dirs:
            raise ftplib.error_perm(f"550 {path}: No such directory")
        return list(self.dirs[path])

    def retrbinary(self, cmd, callback):
        path = cmd[len("RETR "):]
        self.retrieved.append(path)
        if path in self.fail_retrieve:
            raise self.fail_retrieve[path]
        if path not in self.files:
            raise ftplib.error_perm(f"550 {path}: No such file")
        callback(self.files[path])
        return "226 done"

    def quit(self):
        self.connected = False
        return "221 bye"

    def close(self):
        self.connected = False


class InMemoryObjectStorage:
    """ObjectStorageManager replacement keeping objects in a dict."""

    def __init__(self, bucket: str = "test-bucket"):
        self.bucket = bucket
        self.objects: Dict[str, bytes] = {}
        self.metadata: Dict[str, Dict[str, str]] = {}
        self.writes: List[str] = []
        self.lookup_error: Optional[Exception] = None
        self.store_error: Optional[Exception] = None
        self.metadata_error: Optional[Exception] = None
        self.closed = False

    def GetObjectChecksum(self, path: str) -> str:
        if self.lookup_error is not None:
            raise self.lookup_error
        key = ObjectKey(path)
        if key not in self.objects:
            raise ObjectNotFoundError(f"object doesn't exist: {key}")
        return CalculateChecksum(self.objects[key])

    def StoreObject(self, path: str, content: bytes):
        if self.store_error is not None:
            raise self.store_error
        key = ObjectKey(path)
        self.objects[key] = content
        self.metadata[key] = {}
        self.writes.append(key)

    def SetProjectMetadata(self, path: str, project: Project):
        if self.metadata_error is not None:
            raise self.metadata_error
        key = ObjectKey(path)
        if key not in self.objects:
            raise ObjectStorageError(f"object doesn't exist: {key}")
        self.metadata[key] = {PROJECT_METADATA_KEY: project.value}

    def Close(self):
        self.closed = True


class LoopbackUploadAPI:
    """UploadAPI replacement handing uploads straight to the server's processing."""

    def __init__(self, storage: InMemoryObjectStorage):
        self.storage = storage
        self.requests: List[FileUploadRequest] = []
        self.fail_paths: List[str] = []
        self.closed = False

    def file_upload(self, filename, content, md5_sum, project=Project.ROUTEVIEWS):
        request = FileUploadRequest(filename=filename, content=content, md5_sum=md5_sum, project=project)
        self.requests.append(request)
        if filename in self.fail_paths:
            raise ArchiveSyncServerError(f"Upload failed with status 500: {filename}")
        try:
            ProcessFileUpload(self.storage, request)
        except UploadRejectedError as e:
            raise ArchiveSyncServerError(f"Upload failed with status {e.status_code}: {e.message}")
        return {"status": "SUCCESS", "filename": filename, "message": ""}

    def close(self):
        self.closed = True


@pytest.fixture
def fake_ftp():
    return FakeFTP()


@pytest.fixture
def archive(fake_ftp):
    manager = ArchiveManager("archive.example.org", ftp_factory=lambda: fake_ftp)
    manager.connect()
    return manager


@pytest.fixture
def object_storage():
    return InMemoryObjectStorage()


@pytest.fixture
def upload_api(object_storage):
    return LoopbackUploadAPI(object_storage)
