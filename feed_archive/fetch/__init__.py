"""
Article fetching and extraction.

This package handles HTTP fetching of article pages and reducing them
to plain text.
"""

from .fetcher import FetchResult, PageExtractor, client_limits, fetch_page
from .extractor import extract_text

__all__ = [
    "FetchResult",
    "PageExtractor",
    "client_limits",
    "fetch_page",
    "extract_text",
]
