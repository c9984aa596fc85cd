"""
Tests for the upload endpoint and its authentication
"""

import asyncio
import time
from datetime import timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from archive_sync.checksum import CalculateChecksum
from archive_sync.server import settings as server_settings
from archive_sync.server.auth import CreateIdentityToken
from archive_sync.server.server import app
from archive_sync.server.storage import GetStorageManager


SECRET = "test-signing-secret"
AUDIENCE = "https://upload.example.org"


@pytest.fixture
def client(object_storage, monkeypatch):
    monkeypatch.setattr(
        server_settings,
        "settings",
        server_settings.ServerSettings(auth_secret=SECRET, audience=AUDIENCE, bucket="test-bucket")
    )
    app.dependency_overrides[GetStorageManager] = lambda: object_storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(audience=AUDIENCE, secret=SECRET, **kwargs):
    token = CreateIdentityToken("sync-client", audience=audience, secret_key=secret, **kwargs)
    return {"Authorization": f"Bearer {token}"}


def post_upload(client, filename="a/updates.1", content=b"X", md5_sum=None,
                project="ROUTEVIEWS", headers=None):
    if md5_sum is None:
        md5_sum = CalculateChecksum(content)
    return client.post(
        "/upload",
        files={"content": ("updates.1", content, "application/octet-stream")},
        data={"filename": filename, "md5_sum": md5_sum, "project": project},
        headers=auth_headers() if headers is None else headers
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_upload_success(client, object_storage):
    """A valid upload is stored with its project metadata"""
    response = post_upload(client)

    assert response.status_code == 200
    assert response.json()["status"] == "SUCCESS"
    assert object_storage.objects["a/updates.1"] == b"X"
    assert object_storage.metadata["a/updates.1"] == {"project": "ROUTEVIEWS"}


def test_upload_requires_token(client, object_storage):
    response = post_upload(client, headers={})

    assert response.status_code == 401
    assert object_storage.writes == []


def test_upload_rejects_wrong_secret(client, object_storage):
    response = post_upload(client, headers=auth_headers(secret="someone-else"))

    assert response.status_code == 401
    assert object_storage.writes == []


def test_upload_rejects_wrong_audience(client):
    response = post_upload(client, headers=auth_headers(audience="https://elsewhere.example.org"))
    assert response.status_code == 401


def test_upload_rejects_expired_token(client):
    response = post_upload(client, headers=auth_headers(expires_delta=timedelta(seconds=-60)))
    assert response.status_code == 401


def test_audience_unchecked_when_not_configured(client, monkeypatch):
    monkeypatch.setattr(
        server_settings,
        "settings",
        server_settings.ServerSettings(auth_secret=SECRET, bucket="test-bucket")
    )
    response = post_upload(client, headers=auth_headers(audience="https://anything.example.org"))
    assert response.status_code == 200


def test_checksum_mismatch(client, object_storage):
    """Integrity failures return FAIL and write nothing"""
    response = post_upload(client, content=b"X", md5_sum=CalculateChecksum(b"Y"))

    assert response.status_code == 422
    body = response.json()
    assert body["status"] == "FAIL"
    assert "checksum failure" in body["message"]
    assert object_storage.writes == []


def test_missing_filename(client, object_storage):
    response = post_upload(client, filename="")

    assert response.status_code == 400
    assert response.json()["status"] == "FAIL"
    assert object_storage.writes == []


def test_unknown_project(client, object_storage):
    response = post_upload(client, project="NOT_A_PROJECT")

    assert response.status_code == 400
    assert object_storage.writes == []


def test_ripe_ris_not_implemented(client, object_storage):
    response = post_upload(client, project="RIPE_RIS")

    assert response.status_code == 501
    assert response.json()["status"] == "FAIL"
    assert object_storage.writes == []


def test_oversized_upload(client, object_storage, monkeypatch):
    """Content above the message size limit is refused"""
    monkeypatch.setattr(
        server_settings,
        "settings",
        server_settings.ServerSettings(auth_secret=SECRET, audience=AUDIENCE, max_message_size=4)
    )
    response = post_upload(client, content=b"0123456789")

    assert response.status_code == 413
    assert object_storage.writes == []


class SlowObjectStorage:
    """Wraps a storage fake so every write blocks for a while"""

    def __init__(self, inner, delay):
        self.inner = inner
        self.delay = delay

    def StoreObject(self, path, content):
        time.sleep(self.delay)
        self.inner.StoreObject(path, content)

    def SetProjectMetadata(self, path, project):
        self.inner.SetProjectMetadata(path, project)


def test_concurrent_uploads_do_not_block_each_other(client, object_storage):
    """Storage calls run off the event loop, so slow writes overlap"""
    delay = 0.5
    app.dependency_overrides[GetStorageManager] = lambda: SlowObjectStorage(object_storage, delay)

    async def upload_all(count):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as async_client:
            requests = [
                async_client.post(
                    "/upload",
                    files={"content": ("updates.1", b"X", "application/octet-stream")},
                    data={"filename": f"a/updates.{i}", "md5_sum": CalculateChecksum(b"X"), "project": "ROUTEVIEWS"},
                    headers=auth_headers()
                )
                for i in range(count)
            ]
            return await asyncio.gather(*requests)

    started = time.monotonic()
    responses = asyncio.run(upload_all(4))
    elapsed = time.monotonic() - started

    assert [r.status_code for r in responses] == [200, 200, 200, 200]
    assert len(object_storage.objects) == 4
    assert elapsed < 4 * delay
