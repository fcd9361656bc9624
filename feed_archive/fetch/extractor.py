"""
HTML content extraction with multiple fallback strategies.

This module provides a chain of extraction methods:
1. readability: Mozilla's readability algorithm (default)
2. trafilatura: Fast, purpose-built for article content (fallback)
3. bs4: BeautifulSoup plain text extraction (last resort)
"""

from __future__ import annotations

import logging
from typing import Callable

from bs4 import BeautifulSoup
import trafilatura
from readability import Document

logger = logging.getLogger(__name__)


def extract_text(html: str, primary: str, fallback: list[str]) -> str | None:
    """Extract plain text from HTML using a chain of extractors.

    Tries each extraction method in order until one produces non-empty
    output. An extractor that raises on malformed markup counts as empty.

    Args:
        html: The HTML content to extract text from
        primary: Name of the primary extraction method to try first
        fallback: List of fallback method names to try if primary fails

    Returns:
        Extracted plain text with leading/trailing whitespace stripped,
        or None if all methods fail

    Examples:
        >>> extract_text(html, "readability", ["trafilatura", "bs4"])
        "Article content here..."
    """
    order = [primary] + [name for name in fallback if name != primary]
    for method in order:
        extractor = _get_extractor(method)
        if not extractor:
            logger.warning("Unknown extraction method %r", method)
            continue
        try:
            text = extractor(html)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Extractor %s failed: %s", method, exc)
            continue
        if text and text.strip():
            return text.strip()
    return None


def _get_extractor(name: str) -> Callable[[str], str | None] | None:
    if name == "readability":
        return _extract_readability
    if name == "trafilatura":
        return _extract_trafilatura
    if name == "bs4":
        return _extract_bs4
    return None


def _extract_readability(html: str) -> str | None:
    """Extract the main content block with readability, then flatten it to text."""
    doc = Document(html)
    content_html = doc.summary()
    return _extract_bs4(content_html)


def _extract_trafilatura(html: str) -> str | None:
    return trafilatura.extract(html)


def _extract_bs4(html: str) -> str | None:
    """Extract plain text from HTML using BeautifulSoup.

    Removes script/style tags and keeps non-empty lines only.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(separator="\n")
    cleaned = "\n".join([line.strip() for line in text.splitlines() if line.strip()])
    return cleaned if cleaned else None
