"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- StoreConfig: Object store bucket and index key
- FeedsConfig: Feed sources to collect desired entries from
- FetchConfig: Article page fetching settings
- ExtractConfig: Content extraction settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
import re
from typing import Any

import yaml

from .errors import ConfigError


DEFAULT_FEED_SOURCES = ["https://www.persagg.com/zh.yaml"]

_ARTICLE_KEY_RE = re.compile(r"^\d+\.html$")


@dataclass
class StoreConfig:
    """Configuration for the object store holding the archive.

    Attributes:
        bucket: S3 bucket name
        index_key: Reserved key of the index document
        region: AWS region, or None to use the boto3 default chain
        endpoint_url: Custom S3 endpoint (e.g. MinIO), or None for AWS
    """

    bucket: str = "lantern-ads"
    index_key: str = "index.yaml"
    region: str | None = None
    endpoint_url: str | None = None


@dataclass
class FeedsConfig:
    """Configuration for feed collection.

    Attributes:
        sources: URLs of YAML feed documents listing (url, name) entries
        timeout_seconds: Request timeout for each feed document
    """

    sources: list[str] = field(default_factory=lambda: list(DEFAULT_FEED_SOURCES))
    timeout_seconds: float = 30.0


@dataclass
class FetchConfig:
    """Configuration for article page fetching.

    Attributes:
        timeout_seconds: Per-article fetch timeout
        concurrency: Maximum in-flight downloads, None or 0 for unbounded
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 30.0
    concurrency: int | None = None
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )


@dataclass
class ExtractConfig:
    """Configuration for HTML content extraction.

    Attributes:
        primary: Primary extraction method ("readability", "trafilatura", or "bs4")
        fallback: List of fallback methods to try if primary fails
    """

    primary: str = "readability"
    fallback: list[str] = field(default_factory=lambda: ["trafilatura", "bs4"])


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
        directory: Directory for the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "sync.jsonl"
    directory: str = "logs"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    store: StoreConfig = field(default_factory=StoreConfig)
    feeds: FeedsConfig = field(default_factory=FeedsConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults and env overrides.

    Every call returns a new AppConfig, so callers may mutate the result.
    """
    raw: dict[str, Any] = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        raw = loaded

    cfg = _merge_config(AppConfig(), raw)
    _apply_env(cfg)
    return cfg


def validate_config(cfg: AppConfig) -> None:
    """Reject configurations that cannot produce a consistent archive.

    Raises:
        ConfigError: If the bucket or index key is unusable or the
            concurrency limit is negative
    """
    if not cfg.store.bucket:
        raise ConfigError("store.bucket must be set")
    if not cfg.store.index_key:
        raise ConfigError("store.index_key must be set")
    # The index must never collide with an article key
    if _ARTICLE_KEY_RE.match(cfg.store.index_key):
        raise ConfigError(
            f"store.index_key {cfg.store.index_key!r} collides with the article key pattern"
        )
    if cfg.fetch.concurrency is not None and cfg.fetch.concurrency < 0:
        raise ConfigError("fetch.concurrency must be zero (unbounded) or positive")


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            raise ConfigError(f"Unknown config section {key!r}")
        if isinstance(value, dict) and isinstance(data[key], dict):
            unknown = set(value) - set(data[key])
            if unknown:
                raise ConfigError(f"Unknown {key} options: {', '.join(sorted(unknown))}")
            data[key].update(value)
        else:
            raise ConfigError(f"Config section {key!r} must be a mapping")
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        store=StoreConfig(**data["store"]),
        feeds=FeedsConfig(**data["feeds"]),
        fetch=FetchConfig(**data["fetch"]),
        extract=ExtractConfig(**data["extract"]),
        logging=LoggingConfig(**data["logging"]),
    )


def _apply_env(cfg: AppConfig) -> None:
    """Fill store and feed settings from FEED_ARCHIVE_* environment variables."""
    bucket = os.getenv("FEED_ARCHIVE_BUCKET")
    if bucket:
        cfg.store.bucket = bucket
    index_key = os.getenv("FEED_ARCHIVE_INDEX_KEY")
    if index_key:
        cfg.store.index_key = index_key
    endpoint_url = os.getenv("FEED_ARCHIVE_ENDPOINT_URL")
    if endpoint_url:
        cfg.store.endpoint_url = endpoint_url
    feeds = os.getenv("FEED_ARCHIVE_FEEDS")
    if feeds:
        cfg.feeds.sources = [url.strip() for url in feeds.split(",") if url.strip()]
