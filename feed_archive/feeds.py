"""
Feed collection.

A feed source is a URL serving a YAML document: a list of mappings with
`url` and `name` keys. Sources are fetched in order and their entries are
concatenated. A source that cannot be fetched or parsed is skipped with a
warning; it never aborts the run.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import yaml

from .config import FeedsConfig, FetchConfig
from .core.types import FeedEntry
from .errors import FeedSourceError
from .logging_utils import log_event


def parse_feed(text: str, source: str = "<feed>") -> list[FeedEntry]:
    """Parse a YAML feed document into FeedEntry objects.

    Keys are matched case-insensitively ("URL", "Url" and "url" are the same
    field). Items without a url are skipped; a missing name becomes "".

    Raises:
        FeedSourceError: If the document is not valid YAML or not a list
    """
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise FeedSourceError(f"{source}: invalid YAML: {exc}") from exc
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise FeedSourceError(f"{source}: expected a list of entries, got {type(raw).__name__}")

    entries: list[FeedEntry] = []
    for position, item in enumerate(raw):
        entry = _parse_item(item)
        if entry is None:
            logging.getLogger(__name__).warning(
                "Skipping malformed item %d in feed %s", position, source
            )
            continue
        entries.append(entry)
    return entries


def _parse_item(item: Any) -> FeedEntry | None:
    if not isinstance(item, dict):
        return None
    fields = {str(key).lower(): value for key, value in item.items()}
    url = fields.get("url")
    if not isinstance(url, str) or not url.strip():
        return None
    name = fields.get("name")
    return FeedEntry(url=url.strip(), name="" if name is None else str(name))


class FeedCollector:
    """Collects desired entries from every configured feed source."""

    def __init__(
        self,
        sources: list[str],
        timeout: float = 30.0,
        user_agent: str | None = None,
        trust_env: bool = True,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | None = None,
    ):
        self.sources = list(sources)
        self.timeout = timeout
        self.user_agent = user_agent
        self.trust_env = trust_env
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        feeds: FeedsConfig,
        fetch: FetchConfig,
        logger: logging.Logger | None = None,
    ) -> "FeedCollector":
        return cls(
            feeds.sources,
            timeout=feeds.timeout_seconds,
            user_agent=fetch.user_agent,
            trust_env=fetch.trust_env,
            logger=logger,
        )

    def collect(self) -> list[FeedEntry]:
        """Fetch and parse all sources, skipping the ones that fail."""
        headers = {"User-Agent": self.user_agent} if self.user_agent else {}
        entries: list[FeedEntry] = []
        with httpx.Client(
            timeout=self.timeout,
            headers=headers,
            follow_redirects=True,
            trust_env=self.trust_env,
            transport=self.transport,
        ) as client:
            for source in self.sources:
                try:
                    found = self._collect_one(client, source)
                except FeedSourceError as exc:
                    log_event(
                        self.logger,
                        f"Skipping feed {source}: {exc}",
                        level=logging.WARNING,
                        event="feed_failed",
                        source=source,
                        error=str(exc),
                    )
                    continue
                log_event(
                    self.logger,
                    f"Feed {source}: {len(found)} entries",
                    level=logging.DEBUG,
                    event="feed_loaded",
                    source=source,
                    count=len(found),
                )
                entries.extend(found)
        return entries

    def _collect_one(self, client: httpx.Client, source: str) -> list[FeedEntry]:
        try:
            resp = client.get(source)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FeedSourceError(f"{type(exc).__name__}: {exc}") from exc
        if not resp.is_success:
            raise FeedSourceError(f"HTTP {resp.status_code}")
        return parse_feed(resp.text, source)
