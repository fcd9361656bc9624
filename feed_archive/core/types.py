"""
Core data types for the feed archive.

This module defines the data structures passed between sync stages:
- Article: An archived entry, persisted in the index
- FeedEntry: A desired (url, name) pair produced by the feed sources
- IndexState: The index loaded at run start with its id high-water mark
- ReconcilePlan: What a run must download and the provisional next index
- DownloadReport: Outcome of the fetch/persist stage
- SyncResult: Summary of a complete run
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Article:
    """An archived article.

    Attributes:
        id: Positive integer, unique within an index and never reused
        url: Source URL, the natural identity of the content
        title: Display name taken from the feed
    """
    id: int
    url: str
    title: str

    @property
    def storage_key(self) -> str:
        """Key under which the extracted text is stored, e.g. "12.html"."""
        return f"{self.id}.html"


@dataclass(frozen=True)
class FeedEntry:
    """A desired archive entry as published by a feed source."""
    url: str
    name: str


@dataclass
class IndexState:
    """The index as loaded at run start.

    Attributes:
        articles: Archived articles in document order
        next_id: First id that has never been assigned
    """
    articles: list[Article] = field(default_factory=list)
    next_id: int = 1


@dataclass
class ReconcilePlan:
    """Result of diffing the feed against the current index.

    Attributes:
        to_download: New articles that must be fetched, in feed order
        new_index: Surviving articles in index order, followed by new articles
        next_id: First id left unassigned after this plan
    """
    to_download: list[Article] = field(default_factory=list)
    new_index: list[Article] = field(default_factory=list)
    next_id: int = 1


@dataclass
class DownloadReport:
    """Outcome of the fetch/persist stage.

    Attributes:
        downloaded: Number of articles fetched and stored successfully
        failed: Failed article ids mapped to the error message
    """
    downloaded: int = 0
    failed: dict[int, str] = field(default_factory=dict)


@dataclass
class SyncResult:
    """Summary of a single sync run.

    new_articles lists the articles the plan assigned ids to, so a dry run
    can show what it would download.
    """
    feed_entries: int = 0
    existing: int = 0
    to_download: int = 0
    downloaded: int = 0
    failed: int = 0
    deleted: int = 0
    published: bool = False
    dry_run: bool = False
    new_articles: list[Article] = field(default_factory=list)


def next_article_id(index: list[Article]) -> int:
    """Return the id to assign to the next new article (1 for an empty index)."""
    if not index:
        return 1
    return max(article.id for article in index) + 1
