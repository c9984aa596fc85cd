"""
Tests for the S3 object storage manager
"""

import base64
import hashlib

import boto3
import pytest
from botocore.exceptions import EndpointConnectionError
from botocore.stub import Stubber

from archive_sync.object_storage import (
    ObjectStorageManager, ObjectNotFoundError, ObjectStorageError, ObjectKey
)
from archive_sync.projects import Project


BUCKET = "routeviews-archives"


def make_s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing"
    )


class RecordingS3Client:
    """Records put_object / copy_object calls, optionally failing them"""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def put_object(self, **kwargs):
        self.calls.append(("put_object", kwargs))
        if self.error is not None:
            raise self.error
        return {"ETag": '"etag"'}

    def copy_object(self, **kwargs):
        self.calls.append(("copy_object", kwargs))
        if self.error is not None:
            raise self.error
        return {"CopyObjectResult": {"ETag": '"etag"'}}


def test_object_key_strips_leading_separator():
    assert ObjectKey("/bgpdata/2022.01/UPDATES/updates.1.bz2") == "bgpdata/2022.01/UPDATES/updates.1.bz2"
    assert ObjectKey("a/updates.1") == "a/updates.1"


def test_requires_bucket():
    with pytest.raises(ValueError):
        ObjectStorageManager("", client=RecordingS3Client())


def test_get_object_checksum_from_etag():
    """The quoted ETag of a stored object is returned as a plain hex digest"""
    client = make_s3_client()
    storage = ObjectStorageManager(BUCKET, client=client)

    with Stubber(client) as stubber:
        stubber.add_response(
            "head_object",
            {"ETag": '"900150983cd24fb0d6963f7d28e17f72"', "ContentLength": 3},
            {"Bucket": BUCKET, "Key": "a/updates.1"}
        )
        assert storage.GetObjectChecksum("/a/updates.1") == "900150983cd24fb0d6963f7d28e17f72"
        stubber.assert_no_pending_responses()


def test_get_object_checksum_absent_object():
    """A 404 is reported as ObjectNotFoundError"""
    client = make_s3_client()
    storage = ObjectStorageManager(BUCKET, client=client)

    with Stubber(client) as stubber:
        stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
        with pytest.raises(ObjectNotFoundError):
            storage.GetObjectChecksum("a/updates.1")


def test_get_object_checksum_other_failure():
    """Anything but 'absent' is a plain ObjectStorageError"""
    client = make_s3_client()
    storage = ObjectStorageManager(BUCKET, client=client)

    with Stubber(client) as stubber:
        stubber.add_client_error("head_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(ObjectStorageError) as excinfo:
            storage.GetObjectChecksum("a/updates.1")
        assert not isinstance(excinfo.value, ObjectNotFoundError)


def test_store_object_sends_content_md5():
    """Objects are written under the stripped key with a Content-MD5 check"""
    client = RecordingS3Client()
    storage = ObjectStorageManager(BUCKET, client=client)

    storage.StoreObject("/a/updates.1", b"X")

    name, params = client.calls[0]
    assert name == "put_object"
    assert params["Bucket"] == BUCKET
    assert params["Key"] == "a/updates.1"
    assert params["Body"] == b"X"
    assert params["ContentMD5"] == base64.b64encode(hashlib.md5(b"X").digest()).decode("ascii")


def test_set_project_metadata_replaces_metadata():
    """Project metadata is written by copying the object onto itself"""
    client = RecordingS3Client()
    storage = ObjectStorageManager(BUCKET, client=client)

    storage.SetProjectMetadata("a/updates.1", Project.RPKI_RARC)

    name, params = client.calls[0]
    assert name == "copy_object"
    assert params["Key"] == "a/updates.1"
    assert params["CopySource"] == {"Bucket": BUCKET, "Key": "a/updates.1"}
    assert params["Metadata"] == {"project": "RPKI_RARC"}
    assert params["MetadataDirective"] == "REPLACE"


def test_connection_failures_become_storage_errors():
    """Transport failures are wrapped in ObjectStorageError"""
    client = RecordingS3Client(error=EndpointConnectionError(endpoint_url="https://storage.example.org"))
    storage = ObjectStorageManager(BUCKET, client=client)

    with pytest.raises(ObjectStorageError):
        storage.StoreObject("a/updates.1", b"X")
    with pytest.raises(ObjectStorageError):
        storage.SetProjectMetadata("a/updates.1", Project.ROUTEVIEWS)
