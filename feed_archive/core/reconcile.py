"""
Reconciliation of the desired feed state against the current index.

The diff is a pure function: it never touches the network or the store.
Removal is expressed by absence from the new index; there are no tombstones.
"""

from __future__ import annotations

from typing import Iterable

from .types import Article, FeedEntry, ReconcilePlan


def reconcile(
    current: list[Article],
    feed: Iterable[FeedEntry],
    next_id: int,
) -> ReconcilePlan:
    """Diff the feed against the current index and assign ids to new entries.

    Args:
        current: The index loaded at run start
        feed: Desired entries, in feed order (duplicates allowed)
        next_id: Id for the first new article

    Returns:
        ReconcilePlan whose new_index holds the surviving articles in their
        original order followed by the new articles in feed order.

    Examples:
        >>> plan = reconcile([], [FeedEntry("https://a", "A")], 1)
        >>> [a.id for a in plan.to_download]
        [1]
    """
    feed = list(feed)
    wanted_urls = {entry.url for entry in feed}
    # Urls already owned, either by the current index or by a new article
    # created earlier in this pass. First occurrence of a url wins.
    owned_urls = {article.url for article in current}

    plan = ReconcilePlan()
    plan.new_index = [article for article in current if article.url in wanted_urls]

    for entry in feed:
        if entry.url in owned_urls:
            continue
        article = Article(id=next_id, url=entry.url, title=entry.name)
        plan.to_download.append(article)
        plan.new_index.append(article)
        owned_urls.add(entry.url)
        next_id += 1

    plan.next_id = next_id
    return plan
