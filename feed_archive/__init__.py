"""
Feed Archive - keeps an object-store article archive in sync with feeds.

Each run collects the desired (url, name) entries from the feed sources,
reconciles them against the published index, downloads and stores new
articles, deletes orphaned objects and republishes the index.

Main entry point is the CLI via `feed-archive sync` command.

Example:
    $ feed-archive sync -c config.yaml
"""

__all__ = [
    "__version__",
    "Article",
    "FeedEntry",
    "SyncResult",
    "reconcile",
    "run_sync",
]
__version__ = "0.1.0"

from .core.types import Article, FeedEntry, SyncResult
from .core.reconcile import reconcile
from .runner import run_sync
