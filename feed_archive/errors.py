"""
Exception hierarchy for the feed archive.

Two families:
- FatalSyncError: the run cannot establish a trustworthy starting state
  (bad configuration, unreadable or corrupt index) or cannot finish it
  (index publish failed). Raised up to the CLI, which aborts the run.
- Per-item errors (StoreError, FeedSourceError, ExtractionError): caught
  where they happen, logged, and turned into outcome values. They never
  abort a run.
"""

from __future__ import annotations


class FeedArchiveError(Exception):
    """Base class for all feed archive errors."""


class FatalSyncError(FeedArchiveError):
    """An error that aborts the whole sync run before anything is published."""


class ConfigError(FatalSyncError):
    """Configuration is missing or inconsistent."""


class IndexLoadError(FatalSyncError):
    """The index object exists (or may exist) but could not be read from the store."""


class IndexDecodeError(FatalSyncError):
    """The index object was read but is not a valid index document."""


class IndexPublishError(FatalSyncError):
    """The reconciled index could not be written back to the store."""


class StoreError(FeedArchiveError):
    """An object store request failed."""


class ObjectNotFound(StoreError):
    """The requested key does not exist in the object store."""

    def __init__(self, key: str):
        super().__init__(f"Object not found: {key}")
        self.key = key


class FeedSourceError(FeedArchiveError):
    """A single feed source could not be fetched or decoded."""


class ExtractionError(FeedArchiveError):
    """Fetching a page or extracting its text failed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
