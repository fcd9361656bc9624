"""Shared fixtures: an in-memory object store and a scripted extractor."""

from __future__ import annotations

import asyncio

import pytest

from feed_archive.errors import ExtractionError, ObjectNotFound, StoreError
from feed_archive.store import DeleteResult, ObjectStore, StoredObject


class MemoryStore(ObjectStore):
    """ObjectStore kept in a dict, with switches to simulate failures."""

    def __init__(self, objects: dict[str, bytes] | None = None):
        self.objects: dict[str, bytes] = dict(objects or {})
        self.metadata: dict[str, dict[str, str]] = {}
        self.puts: list[str] = []
        self.delete_requests: list[list[str]] = []
        self.fail_get = False
        self.fail_put_keys: set[str] = set()
        self.fail_list = False
        self.fail_delete = False
        self.undeletable: set[str] = set()

    def get_object(self, key: str) -> StoredObject:
        if self.fail_get:
            raise StoreError("access denied")
        if key not in self.objects:
            raise ObjectNotFound(key)
        return StoredObject(self.objects[key], dict(self.metadata.get(key, {})))

    def put(self, key, data, content_type=None, metadata=None) -> None:
        if key in self.fail_put_keys:
            raise StoreError(f"cannot write {key}")
        self.puts.append(key)
        self.objects[key] = data
        self.metadata[key] = dict(metadata or {})

    def list_keys(self, prefix: str = "") -> list[str]:
        if self.fail_list:
            raise StoreError("cannot list")
        return sorted(key for key in self.objects if key.startswith(prefix))

    def delete_batch(self, keys: list[str]) -> DeleteResult:
        if self.fail_delete:
            raise StoreError("cannot delete")
        self.delete_requests.append(list(keys))
        result = DeleteResult()
        for key in keys:
            if key in self.undeletable:
                result.errors[key] = "AccessDenied"
                continue
            self.objects.pop(key, None)
            self.metadata.pop(key, None)
            result.deleted.append(key)
        return result

    def article_keys(self, index_key: str = "index.yaml") -> set[str]:
        return {key for key in self.objects if key != index_key}


class ScriptedExtractor:
    """Async extract(url, timeout) returning canned text or failing per url."""

    def __init__(self, failing: set[str] | None = None, delay: float = 0.0):
        self.failing = set(failing or ())
        self.delay = delay
        self.calls: list[tuple[str, float]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, url: str, timeout: float) -> str:
        self.calls.append((url, timeout))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if url in self.failing:
                raise ExtractionError(url, "Timeout: read timed out")
            return f"text of {url}"
        finally:
            self.in_flight -= 1


class StaticCollector:
    def __init__(self, entries):
        self.entries = list(entries)

    def collect(self):
        return list(self.entries)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_store():
    return MemoryStore


@pytest.fixture
def make_extractor():
    return ScriptedExtractor


@pytest.fixture
def make_collector():
    return StaticCollector
