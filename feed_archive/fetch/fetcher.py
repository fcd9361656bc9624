"""
Article page fetching and text extraction.

fetch_page performs a single async HTTP GET with httpx and reports the
outcome as a FetchResult instead of raising. PageExtractor combines a fetch
with the extraction chain and is the collaborator the sync stage calls for
each new article: extract(url, timeout) -> text, or ExtractionError.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx

from ..config import ExtractConfig, FetchConfig
from ..errors import ExtractionError
from .extractor import extract_text

DEFAULT_KEEPALIVE_CONNECTIONS = 20


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        text: The response body text, or None on error
        error: Error message if fetch failed, None on success
    """
    url: str
    status_code: int | None
    text: str | None
    error: str | None


async def fetch_page(client: httpx.AsyncClient, url: str, timeout: float) -> FetchResult:
    """Fetch a URL once, following redirects.

    The timeout bounds the whole request, body included, so a server that
    trickles bytes cannot hold the download stage open. No retries: a failed
    article is attempted again on the next run.

    Args:
        client: Shared async client
        url: The URL to fetch
        timeout: Request timeout in seconds

    Returns:
        FetchResult with text on a 2xx response or error message otherwise
    """
    try:
        resp = await asyncio.wait_for(
            client.get(url, timeout=timeout, follow_redirects=True), timeout
        )
    except asyncio.TimeoutError:
        return FetchResult(
            url=url,
            status_code=None,
            text=None,
            error=f"Timeout: no complete response within {timeout}s",
        )
    except httpx.TimeoutException as exc:
        return FetchResult(url=url, status_code=None, text=None, error=f"Timeout: {exc}")
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        return FetchResult(url=url, status_code=None, text=None, error=f"{type(exc).__name__}: {exc}")

    if not resp.is_success:
        return FetchResult(
            url=url,
            status_code=resp.status_code,
            text=None,
            error=f"HTTP {resp.status_code}",
        )
    return FetchResult(url=url, status_code=resp.status_code, text=resp.text, error=None)


def client_limits(cfg: FetchConfig) -> httpx.Limits:
    """Connection pool limits matching the download concurrency.

    httpx caps a client at 100 connections by default. Downloads beyond that
    would queue for a connection and spend their timeout waiting, so the pool
    is only capped when fetch.concurrency is.
    """
    return httpx.Limits(
        max_connections=cfg.concurrency or None,
        max_keepalive_connections=DEFAULT_KEEPALIVE_CONNECTIONS,
    )


class PageExtractor:
    """Fetch an article page and reduce it to plain text.

    Use as an async context manager so the underlying httpx client is
    shared by every concurrent download and closed afterwards:

        async with PageExtractor(cfg.fetch, cfg.extract) as extract:
            text = await extract(url, timeout)
    """

    def __init__(
        self,
        fetch_cfg: FetchConfig,
        extract_cfg: ExtractConfig,
        client: httpx.AsyncClient | None = None,
    ):
        self.fetch_cfg = fetch_cfg
        self.extract_cfg = extract_cfg
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "PageExtractor":
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self.fetch_cfg.user_agent},
                trust_env=self.fetch_cfg.trust_env,
                limits=client_limits(self.fetch_cfg),
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __call__(self, url: str, timeout: float) -> str:
        if self._client is None:
            raise RuntimeError("PageExtractor must be entered with 'async with' before use")

        result = await fetch_page(self._client, url, timeout)
        if result.error or result.text is None:
            raise ExtractionError(url, result.error or "empty response")

        # Extraction is CPU bound; keep it off the event loop
        text = await asyncio.to_thread(
            extract_text, result.text, self.extract_cfg.primary, self.extract_cfg.fallback
        )
        if not text:
            raise ExtractionError(url, "empty extraction result")
        return text
