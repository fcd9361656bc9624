"""
Fetch/persist, index repair and garbage collection.

download_articles launches one task per new article and waits for all of
them (a full barrier) before the provisional index is repaired. Each task
returns its own outcome, so the failed-id set is only assembled from
settled results after the barrier; no task reads another task's outcome.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Awaitable, Callable

from .core.types import Article, DownloadReport
from .errors import ExtractionError, StoreError
from .logging_utils import log_event
from .store import ObjectStore

# extract(url, timeout) -> plain text, raising ExtractionError on failure
Extractor = Callable[[str, float], Awaitable[str]]


@dataclass
class DownloadOutcome:
    """Outcome of a single article download task."""
    article: Article
    ok: bool
    error: str | None = None


async def download_articles(
    articles: list[Article],
    new_index: list[Article],
    store: ObjectStore,
    extract: Extractor,
    timeout: float = 30.0,
    concurrency: int | None = None,
    logger: logging.Logger | None = None,
) -> DownloadReport:
    """Fetch and store every article, then drop failures from new_index.

    Args:
        articles: Articles to download
        new_index: Provisional index, repaired in place
        store: Destination object store
        extract: Async extraction collaborator
        timeout: Per-article fetch timeout in seconds
        concurrency: Maximum in-flight tasks; None or 0 means one task per
            article with no cap
        logger: Logger for per-article events

    Returns:
        DownloadReport with the success count and failed ids
    """
    limiter = asyncio.Semaphore(concurrency) if concurrency else None

    async def _download_single(article: Article) -> DownloadOutcome:
        if limiter is None:
            return await _fetch_and_store(article, store, extract, timeout, logger)
        async with limiter:
            return await _fetch_and_store(article, store, extract, timeout, logger)

    tasks = [asyncio.create_task(_download_single(article)) for article in articles]
    outcomes = await asyncio.gather(*tasks)

    report = DownloadReport()
    for outcome in outcomes:
        if outcome.ok:
            report.downloaded += 1
        else:
            report.failed[outcome.article.id] = outcome.error or "unknown error"

    repair_index(new_index, set(report.failed))
    return report


async def _fetch_and_store(
    article: Article,
    store: ObjectStore,
    extract: Extractor,
    timeout: float,
    logger: logging.Logger | None,
) -> DownloadOutcome:
    try:
        text = await extract(article.url, timeout)
    except ExtractionError as exc:
        log_event(
            logger,
            f"Unable to fetch origin article at {article.url}: {exc.reason}",
            level=logging.WARNING,
            event="download_failed",
            stage="fetch",
            article_id=article.id,
            url=article.url,
            error=exc.reason,
        )
        return DownloadOutcome(article=article, ok=False, error=exc.reason)

    try:
        # boto3 calls block; run them off the event loop
        await asyncio.to_thread(
            store.put,
            article.storage_key,
            text.encode("utf-8"),
            "text/plain; charset=utf-8",
        )
    except StoreError as exc:
        log_event(
            logger,
            f"Unable to upload article {article.id}: {exc}",
            level=logging.WARNING,
            event="download_failed",
            stage="store",
            article_id=article.id,
            url=article.url,
            error=str(exc),
        )
        return DownloadOutcome(article=article, ok=False, error=str(exc))

    log_event(
        logger,
        f"Stored article {article.id} ({article.url})",
        level=logging.DEBUG,
        event="download_ok",
        article_id=article.id,
        url=article.url,
        key=article.storage_key,
        chars=len(text),
    )
    return DownloadOutcome(article=article, ok=True)


def repair_index(new_index: list[Article], failed_ids: set[int]) -> None:
    """Remove failed articles from new_index in place, keeping order."""
    if not failed_ids:
        return
    new_index[:] = [article for article in new_index if article.id not in failed_ids]


def find_orphans(new_index: list[Article], keys: list[str], index_key: str) -> list[str]:
    """Return stored keys that no article in new_index refers to."""
    wanted = {article.storage_key for article in new_index}
    return [key for key in keys if key != index_key and key not in wanted]


def collect_garbage(
    new_index: list[Article],
    store: ObjectStore,
    index_key: str,
    logger: logging.Logger | None = None,
) -> int:
    """Delete stored objects not referenced by new_index.

    Listing or delete transport failures are logged and reported as zero
    deletions; the orphans are left for a later run.

    Returns:
        Number of objects the store confirmed as deleted
    """
    try:
        keys = store.list_keys()
    except StoreError as exc:
        log_event(
            logger,
            f"Cannot list stored objects: {exc}",
            level=logging.ERROR,
            event="gc_failed",
            stage="list",
            error=str(exc),
        )
        return 0

    orphans = find_orphans(new_index, keys, index_key)
    if not orphans:
        return 0

    try:
        result = store.delete_batch(orphans)
    except StoreError as exc:
        log_event(
            logger,
            f"Cannot delete old articles: {exc}",
            level=logging.ERROR,
            event="gc_failed",
            stage="delete",
            error=str(exc),
            orphans=len(orphans),
        )
        return 0

    for key, message in result.errors.items():
        log_event(
            logger,
            f"Cannot delete {key}: {message}",
            level=logging.WARNING,
            event="gc_failed",
            stage="delete",
            key=key,
            error=message,
        )
    if result.deleted:
        log_event(
            logger,
            f"Deleted {len(result.deleted)} orphaned objects",
            event="gc_deleted",
            count=len(result.deleted),
            keys=result.deleted,
        )
    return len(result.deleted)
