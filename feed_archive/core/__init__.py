"""
Core domain models and reconciliation logic.

This package contains the data types, the index codec and the pure diff
between the desired feed state and the current index.
"""

from .types import (
    Article,
    DownloadReport,
    FeedEntry,
    IndexState,
    ReconcilePlan,
    SyncResult,
    next_article_id,
)
from .reconcile import reconcile
from .index import dump_index, load_index, parse_index, publish_index

__all__ = [
    "Article",
    "DownloadReport",
    "FeedEntry",
    "IndexState",
    "ReconcilePlan",
    "SyncResult",
    "next_article_id",
    "reconcile",
    "dump_index",
    "load_index",
    "parse_index",
    "publish_index",
]
