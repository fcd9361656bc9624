"""Tests for the boto3-backed object store, using botocore's Stubber."""

from __future__ import annotations

import io

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from feed_archive.errors import ObjectNotFound, StoreError
from feed_archive.store import DELETE_BATCH_LIMIT, S3ObjectStore


@pytest.fixture
def s3_client():
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def _body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


def test_get_object_returns_data_and_metadata(s3_client):
    client, stubber = s3_client
    stubber.add_response(
        "get_object",
        {"Body": _body(b"- id: 1\n"), "Metadata": {"next-id": "4"}},
        {"Bucket": "archive", "Key": "index.yaml"},
    )

    stored = S3ObjectStore("archive", client=client).get_object("index.yaml")

    assert stored.data == b"- id: 1\n"
    assert stored.metadata == {"next-id": "4"}


def test_get_missing_key_raises_not_found(s3_client):
    client, stubber = s3_client
    stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

    with pytest.raises(ObjectNotFound):
        S3ObjectStore("archive", client=client).get("index.yaml")


def test_get_access_denied_raises_store_error(s3_client):
    client, stubber = s3_client
    stubber.add_client_error("get_object", service_error_code="AccessDenied", http_status_code=403)

    with pytest.raises(StoreError) as excinfo:
        S3ObjectStore("archive", client=client).get("index.yaml")

    assert not isinstance(excinfo.value, ObjectNotFound)


def test_put_sends_content_type_and_metadata(s3_client):
    client, stubber = s3_client
    stubber.add_response(
        "put_object",
        {},
        {
            "Bucket": "archive",
            "Key": "index.yaml",
            "Body": b"[]\n",
            "ContentType": "application/x-yaml",
            "Metadata": {"next-id": "1"},
        },
    )

    S3ObjectStore("archive", client=client).put(
        "index.yaml", b"[]\n", content_type="application/x-yaml", metadata={"next-id": "1"}
    )


def test_put_failure_raises_store_error(s3_client):
    client, stubber = s3_client
    stubber.add_client_error("put_object", service_error_code="InternalError", http_status_code=500)

    with pytest.raises(StoreError):
        S3ObjectStore("archive", client=client).put("1.html", b"text")


def test_list_keys_follows_pagination(s3_client):
    client, stubber = s3_client
    stubber.add_response(
        "list_objects_v2",
        {
            "Contents": [{"Key": "1.html"}, {"Key": "2.html"}],
            "IsTruncated": True,
            "NextContinuationToken": "page-2",
        },
        {"Bucket": "archive", "Prefix": ""},
    )
    stubber.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "index.yaml"}], "IsTruncated": False},
        {"Bucket": "archive", "Prefix": "", "ContinuationToken": "page-2"},
    )

    assert S3ObjectStore("archive", client=client).list_keys() == ["1.html", "2.html", "index.yaml"]


def test_list_empty_bucket(s3_client):
    client, stubber = s3_client
    stubber.add_response("list_objects_v2", {"IsTruncated": False}, {"Bucket": "archive", "Prefix": ""})

    assert S3ObjectStore("archive", client=client).list_keys() == []


def test_delete_batch_chunks_and_reports_errors(s3_client):
    client, stubber = s3_client
    keys = [f"{i}.html" for i in range(1, DELETE_BATCH_LIMIT + 3)]
    first, second = keys[:DELETE_BATCH_LIMIT], keys[DELETE_BATCH_LIMIT:]
    stubber.add_response(
        "delete_objects",
        {"Deleted": [{"Key": key} for key in first]},
        {"Bucket": "archive", "Delete": {"Objects": [{"Key": key} for key in first]}},
    )
    stubber.add_response(
        "delete_objects",
        {
            "Deleted": [{"Key": second[0]}],
            "Errors": [{"Key": second[1], "Code": "AccessDenied", "Message": "Access Denied"}],
        },
        {"Bucket": "archive", "Delete": {"Objects": [{"Key": key} for key in second]}},
    )

    result = S3ObjectStore("archive", client=client).delete_batch(keys)

    assert len(result.deleted) == DELETE_BATCH_LIMIT + 1
    assert result.errors == {second[1]: "Access Denied"}


def test_delete_transport_failure_raises_store_error(s3_client):
    client, stubber = s3_client
    stubber.add_client_error("delete_objects", service_error_code="InternalError", http_status_code=500)

    with pytest.raises(StoreError):
        S3ObjectStore("archive", client=client).delete_batch(["1.html"])
