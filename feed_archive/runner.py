"""
Main orchestration for one archive sync run.

This module coordinates the entire workflow:
1. Collect desired entries from the feed sources
2. Load the current index (empty if none was published yet)
3. Reconcile the feed against the index
4. Fetch and store new articles, dropping failures from the index
5. Delete stored objects the index no longer refers to
6. Publish the index if the run changed anything

Fatal errors (FatalSyncError) propagate out of run_sync before the index is
published. Per-article and per-source failures are logged and never raise.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from .config import AppConfig, validate_config
from .core.index import load_index, publish_index
from .core.reconcile import reconcile
from .core.types import FeedEntry, SyncResult
from .errors import ConfigError, StoreError
from .feeds import FeedCollector
from .fetch.fetcher import PageExtractor
from .logging_utils import get_logger, log_event
from .store import ObjectStore, S3ObjectStore
from .sync import Extractor, collect_garbage, download_articles


class Collector(Protocol):
    def collect(self) -> list[FeedEntry]: ...


def run_sync(
    cfg: AppConfig,
    store: ObjectStore | None = None,
    collector: Collector | None = None,
    extract: Extractor | None = None,
    dry_run: bool = False,
    logger: logging.Logger | None = None,
) -> SyncResult:
    """Run a complete sync of the archive against the configured feeds.

    Args:
        cfg: Application configuration
        store: Object store; built from cfg.store when None
        collector: Feed collector; built from cfg.feeds when None
        extract: Article extractor; a PageExtractor when None
        dry_run: Stop after reconciliation and write nothing
        logger: Logger for events (the package logger when None)

    Returns:
        SyncResult describing what the run did

    Raises:
        FatalSyncError: On invalid configuration, an unreadable or corrupt
            index, or a failed index publish
    """
    logger = logger or get_logger()
    validate_config(cfg)
    index_key = cfg.store.index_key

    if store is None:
        try:
            store = S3ObjectStore.from_config(cfg.store)
        except StoreError as exc:
            raise ConfigError(str(exc)) from exc
    if collector is None:
        collector = FeedCollector.from_config(cfg.feeds, cfg.fetch, logger=logger)

    log_event(
        logger,
        f"Sync start: bucket={cfg.store.bucket} index={index_key}",
        event="sync_start",
        bucket=cfg.store.bucket,
        index_key=index_key,
        sources=len(cfg.feeds.sources),
        dry_run=dry_run,
    )

    feed = collector.collect()
    log_event(logger, f"Collected {len(feed)} feed entries", event="feeds_collected", count=len(feed))

    state = load_index(store, index_key)
    current = state.articles
    log_event(
        logger,
        f"Loaded index with {len(current)} articles",
        event="index_loaded",
        count=len(current),
        next_id=state.next_id,
    )

    plan = reconcile(current, feed, state.next_id)
    result = SyncResult(
        feed_entries=len(feed),
        existing=len(current),
        to_download=len(plan.to_download),
        dry_run=dry_run,
        new_articles=list(plan.to_download),
    )
    kept = len(plan.new_index) - len(plan.to_download)
    log_event(
        logger,
        f"Plan: keep {kept}, download {len(plan.to_download)}, drop {len(current) - kept}",
        event="plan_ready",
        keep=kept,
        download=len(plan.to_download),
        drop=len(current) - kept,
        urls=[article.url for article in plan.to_download],
    )
    if dry_run:
        return result

    report = asyncio.run(_download(plan.to_download, plan.new_index, store, extract, cfg, logger))
    result.downloaded = report.downloaded
    result.failed = len(report.failed)

    result.deleted = collect_garbage(plan.new_index, store, index_key, logger=logger)

    if result.deleted > 0 or result.downloaded > 0:
        publish_index(store, index_key, plan.new_index, next_id=plan.next_id)
        result.published = True
        log_event(
            logger,
            f"Published index with {len(plan.new_index)} articles",
            event="index_published",
            count=len(plan.new_index),
        )
    else:
        log_event(logger, "Nothing changed; index left as is", event="index_unchanged")

    log_event(
        logger,
        f"Sync complete: downloaded={result.downloaded} failed={result.failed} deleted={result.deleted}",
        event="sync_complete",
        downloaded=result.downloaded,
        failed=result.failed,
        deleted=result.deleted,
        published=result.published,
    )
    return result


async def _download(articles, new_index, store, extract, cfg: AppConfig, logger):
    """Run the fetch/persist stage, opening a PageExtractor when none is given."""
    if extract is not None:
        return await download_articles(
            articles, new_index, store, extract,
            timeout=cfg.fetch.timeout_seconds,
            concurrency=cfg.fetch.concurrency,
            logger=logger,
        )
    async with PageExtractor(cfg.fetch, cfg.extract) as page_extractor:
        return await download_articles(
            articles, new_index, store, page_extractor,
            timeout=cfg.fetch.timeout_seconds,
            concurrency=cfg.fetch.concurrency,
            logger=logger,
        )
