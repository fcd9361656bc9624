"""
Index document codec and store access.

The index is a YAML sequence of {id, url, title} mappings stored under a
single reserved key. The object also carries a "next-id" metadata entry,
the id high-water mark, so ids of evicted articles and of failed attempts
recorded in a published run are never handed out again.

The index is the only record of what is currently archived, so a document
that cannot be decoded aborts the run instead of being treated as empty.
"""

from __future__ import annotations

import logging

import yaml

from ..errors import IndexDecodeError, IndexLoadError, IndexPublishError, ObjectNotFound, StoreError
from ..store import ObjectStore
from .types import Article, IndexState, next_article_id

logger = logging.getLogger(__name__)

# Object metadata carrying the id high-water mark
NEXT_ID_METADATA = "next-id"


def parse_index(data: bytes | str) -> list[Article]:
    """Decode an index document.

    Args:
        data: Raw YAML bytes or text read from the store

    Returns:
        Articles in document order. An empty document is an empty index.
        A record repeating an earlier url is dropped; the first one wins.

    Raises:
        IndexDecodeError: If the document is not a list of well-formed
            records, or repeats an id
    """
    articles, _ = _decode_index(data)
    return articles


def _decode_index(data: bytes | str) -> tuple[list[Article], int]:
    """Decode an index document, also returning the highest id it mentions."""
    try:
        raw = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise IndexDecodeError(f"Index is not valid YAML: {exc}") from exc

    if raw is None:
        return [], 0
    if not isinstance(raw, list):
        raise IndexDecodeError(f"Index must be a list, got {type(raw).__name__}")

    articles: list[Article] = []
    seen_ids: set[int] = set()
    seen_urls: set[str] = set()
    for position, item in enumerate(raw):
        article = _parse_record(item, position)
        if article.id in seen_ids:
            raise IndexDecodeError(f"Duplicate article id {article.id} in index")
        seen_ids.add(article.id)
        # Older archives may list a url twice; the later copy becomes an orphan
        if article.url in seen_urls:
            logger.warning(
                "Dropping index record %d: url %s already archived", article.id, article.url
            )
            continue
        seen_urls.add(article.url)
        articles.append(article)
    return articles, max(seen_ids, default=0)


def _parse_record(item: object, position: int) -> Article:
    if not isinstance(item, dict):
        raise IndexDecodeError(f"Index record {position} is not a mapping")
    article_id = item.get("id")
    url = item.get("url")
    title = item.get("title", "")
    # bool is an int subclass; "id: true" is not an id
    if not isinstance(article_id, int) or isinstance(article_id, bool) or article_id < 1:
        raise IndexDecodeError(f"Index record {position} has invalid id {article_id!r}")
    if not isinstance(url, str) or not url:
        raise IndexDecodeError(f"Index record {position} has invalid url {url!r}")
    if title is None:
        title = ""
    return Article(id=article_id, url=url, title=str(title))


def dump_index(articles: list[Article]) -> bytes:
    """Encode the index sorted by ascending id."""
    ordered = sorted(articles, key=lambda article: article.id)
    records = [{"id": a.id, "url": a.url, "title": a.title} for a in ordered]
    text = yaml.safe_dump(records, allow_unicode=True, sort_keys=False, default_flow_style=False)
    return text.encode("utf-8")


def load_index(store: ObjectStore, index_key: str) -> IndexState:
    """Load the current index, or an empty index if none has been published.

    Returns:
        IndexState whose next_id is past every id the index has ever handed
        out: the larger of the stored high-water mark and max(id) + 1

    Raises:
        IndexLoadError: If the store cannot be read
        IndexDecodeError: If the stored document is corrupt
    """
    try:
        stored = store.get_object(index_key)
    except ObjectNotFound:
        logger.info("No index at %s yet, starting empty", index_key)
        return IndexState()
    except StoreError as exc:
        raise IndexLoadError(
            f"Problem accessing the index; check store credentials and configuration: {exc}"
        ) from exc

    articles, highest_id = _decode_index(stored.data)
    next_id = max(highest_id + 1, _parse_high_water_mark(stored.metadata))
    return IndexState(articles=articles, next_id=next_id)


def _parse_high_water_mark(metadata: dict[str, str]) -> int:
    raw = metadata.get(NEXT_ID_METADATA)
    if raw is None:
        return 1
    try:
        value = int(raw)
    except ValueError as exc:
        raise IndexDecodeError(f"Index metadata {NEXT_ID_METADATA}={raw!r} is not an integer") from exc
    if value < 1:
        raise IndexDecodeError(f"Index metadata {NEXT_ID_METADATA}={value} is not positive")
    return value


def publish_index(
    store: ObjectStore,
    index_key: str,
    articles: list[Article],
    next_id: int | None = None,
) -> None:
    """Write the index back to the store.

    Args:
        store: Destination object store
        index_key: Reserved key of the index document
        articles: Final index
        next_id: High-water mark to record; ids below it are never reassigned

    Raises:
        IndexPublishError: If the store rejects the write
    """
    next_id = max(next_id or 1, next_article_id(articles))
    try:
        store.put(
            index_key,
            dump_index(articles),
            content_type="application/x-yaml",
            metadata={NEXT_ID_METADATA: str(next_id)},
        )
    except StoreError as exc:
        raise IndexPublishError(f"Cannot publish index {index_key}: {exc}") from exc
