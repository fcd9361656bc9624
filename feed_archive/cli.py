"""
Command-line interface for the feed archive.

Uses Typer to expose the sync run and a read-only view of the published
index. Supports loading .env files for store credentials.
"""

from __future__ import annotations

from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config, validate_config
from .core.index import load_index
from .core.types import SyncResult
from .errors import FatalSyncError, StoreError
from .logging_utils import setup_logging
from .runner import run_sync
from .store import S3ObjectStore

app = typer.Typer(add_completion=False)
console = Console()


def _load(
    config: Path | None,
    bucket: str | None,
    index_key: str | None,
    log_level: str | None,
) -> AppConfig:
    load_dotenv()
    try:
        cfg = load_config(str(config) if config else None)
    except FatalSyncError as exc:
        console.print(f"[bold red]Configuration error[/bold red]: {exc}")
        raise typer.Exit(code=1) from exc
    if bucket:
        cfg.store.bucket = bucket
    if index_key:
        cfg.store.index_key = index_key
    if log_level:
        cfg.logging.level = log_level
    return cfg


@app.command()
def sync(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    bucket: str | None = typer.Option(None, "--bucket", help="Override store bucket."),
    index_key: str | None = typer.Option(None, "--index-key", help="Override index key."),
    feed: list[str] | None = typer.Option(
        None, "--feed", "-f", help="Feed source URL (repeatable, replaces configured sources)."
    ),
    concurrency: int | None = typer.Option(
        None, "--concurrency", help="Maximum concurrent downloads (0 for unbounded)."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute the plan without writing."),
):
    """Synchronize the archive with the configured feeds.

    Collects the feeds, reconciles them against the published index,
    downloads new articles, deletes orphaned objects and publishes the
    index when anything changed.
    """
    cfg = _load(config, bucket, index_key, log_level)
    if feed:
        cfg.feeds.sources = list(feed)
    if concurrency is not None:
        cfg.fetch.concurrency = concurrency

    logger = setup_logging(cfg.logging)
    try:
        result = run_sync(cfg, dry_run=dry_run, logger=logger)
    except FatalSyncError as exc:
        console.print(f"[bold red]Sync aborted[/bold red]: {exc}")
        raise typer.Exit(code=1) from exc

    _render_result(result)


@app.command()
def plan(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    bucket: str | None = typer.Option(None, "--bucket", help="Override store bucket."),
    index_key: str | None = typer.Option(None, "--index-key", help="Override index key."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Show what a sync would download and drop, without writing anything."""
    sync(
        config=config,
        bucket=bucket,
        index_key=index_key,
        feed=None,
        concurrency=None,
        log_level=log_level,
        dry_run=True,
    )


@app.command("show-index")
def show_index(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    bucket: str | None = typer.Option(None, "--bucket", help="Override store bucket."),
    index_key: str | None = typer.Option(None, "--index-key", help="Override index key."),
):
    """Print the currently published index."""
    cfg = _load(config, bucket, index_key, None)
    try:
        validate_config(cfg)
        store = S3ObjectStore.from_config(cfg.store)
        articles = load_index(store, cfg.store.index_key).articles
    except (FatalSyncError, StoreError) as exc:
        console.print(f"[bold red]Cannot read index[/bold red]: {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title=f"{cfg.store.bucket}/{cfg.store.index_key}")
    table.add_column("ID", justify="right")
    table.add_column("Key")
    table.add_column("Title")
    table.add_column("URL")
    for article in sorted(articles, key=lambda a: a.id):
        table.add_row(str(article.id), article.storage_key, article.title, article.url)
    console.print(table)
    console.print(f"{len(articles)} articles")


def _render_result(result: SyncResult) -> None:
    if result.dry_run:
        console.print(
            "[bold]Sync plan[/bold]: "
            f"feed_entries={result.feed_entries}, existing={result.existing}, "
            f"to_download={result.to_download}"
        )
        if result.new_articles:
            table = Table(title="Would download")
            table.add_column("ID", justify="right")
            table.add_column("Key")
            table.add_column("Title")
            table.add_column("URL")
            for article in result.new_articles:
                table.add_row(str(article.id), article.storage_key, article.title, article.url)
            console.print(table)
        return
    console.print(
        "[bold]Sync summary[/bold]: "
        f"downloaded={result.downloaded}, failed={result.failed}, "
        f"deleted={result.deleted}, published={'yes' if result.published else 'no'}"
    )


if __name__ == "__main__":
    app()
