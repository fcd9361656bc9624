"""Object store access for the archive.

The sync engine only needs four operations on the store: get (with the
object metadata), put, list and batched delete. ObjectStore names that
contract; S3ObjectStore implements it on top of boto3. Every boto3/botocore
failure is translated into StoreError (or ObjectNotFound) so callers never
handle botocore exceptions directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import StoreConfig
from .errors import ObjectNotFound, StoreError

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most this many keys per request
DELETE_BATCH_LIMIT = 1000

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass
class DeleteResult:
    """Outcome of a batched delete.

    Attributes:
        deleted: Keys the store confirmed as deleted
        errors: Keys that could not be deleted, mapped to the store's message
    """
    deleted: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


@dataclass
class StoredObject:
    """An object read from the store with its user metadata."""
    data: bytes
    metadata: dict[str, str] = field(default_factory=dict)


class ObjectStore(ABC):
    """Minimal key/value object store used by the sync engine."""

    def get(self, key: str) -> bytes:
        """Return the object stored at key.

        Raises:
            ObjectNotFound: If the key does not exist
            StoreError: On any other failure
        """
        return self.get_object(key).data

    @abstractmethod
    def get_object(self, key: str) -> StoredObject:
        """Return the object stored at key together with its metadata."""

    @abstractmethod
    def put(
        self,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Store data under key, replacing any existing object."""

    @abstractmethod
    def list_keys(self, prefix: str = "") -> list[str]:
        """Return every key starting with prefix."""

    @abstractmethod
    def delete_batch(self, keys: list[str]) -> DeleteResult:
        """Delete keys, reporting per-key failures in aggregate."""


class S3ObjectStore(ObjectStore):
    """ObjectStore backed by a single S3 bucket."""

    def __init__(
        self,
        bucket: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        client: Any | None = None,
    ):
        """Initialize the S3 store.

        Args:
            bucket: S3 bucket name
            region: AWS region, or None to use the boto3 default chain
            endpoint_url: Custom endpoint for S3-compatible services
            client: Pre-built boto3 S3 client (used by tests)
        """
        self.bucket = bucket
        if client is None:
            try:
                client = boto3.client("s3", region_name=region, endpoint_url=endpoint_url)
            except BotoCoreError as exc:
                raise StoreError(f"Cannot create S3 client: {exc}") from exc
        self.client = client

    @classmethod
    def from_config(cls, cfg: StoreConfig) -> "S3ObjectStore":
        return cls(cfg.bucket, region=cfg.region, endpoint_url=cfg.endpoint_url)

    def get_object(self, key: str) -> StoredObject:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"]
            try:
                data = body.read()
            finally:
                body.close()
            return StoredObject(data=data, metadata=dict(response.get("Metadata") or {}))
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise ObjectNotFound(key) from exc
            raise StoreError(f"Cannot read s3://{self.bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreError(f"Cannot read s3://{self.bucket}/{key}: {exc}") from exc

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        if metadata:
            params["Metadata"] = metadata
        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"Cannot write s3://{self.bucket}/{key}: {exc}") from exc

    def list_keys(self, prefix: str = "") -> list[str]:
        keys: list[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for item in page.get("Contents", []):
                    keys.append(item["Key"])
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"Cannot list s3://{self.bucket}/{prefix}: {exc}") from exc
        return keys

    def delete_batch(self, keys: list[str]) -> DeleteResult:
        result = DeleteResult()
        for start in range(0, len(keys), DELETE_BATCH_LIMIT):
            chunk = keys[start:start + DELETE_BATCH_LIMIT]
            try:
                response = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in chunk]},
                )
            except (ClientError, BotoCoreError) as exc:
                raise StoreError(f"Cannot delete objects from s3://{self.bucket}: {exc}") from exc
            for item in response.get("Deleted", []):
                result.deleted.append(item["Key"])
            for item in response.get("Errors", []):
                result.errors[item["Key"]] = item.get("Message") or item.get("Code", "unknown")
        return result


def _error_code(exc: ClientError) -> str:
    error = exc.response.get("Error", {})
    return str(error.get("Code", ""))
