"""HTTP retrieval of raw feed text."""

from __future__ import annotations

import logging
import time

import httpx

from .models import Record
from .parser import parse_csv

logger = logging.getLogger(__name__)

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
}


class FeedFetchError(RuntimeError):
    """Raised when a feed cannot be retrieved for any reason."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Fetch failed {url}: {reason}")
        self.url = url
        self.reason = reason


def add_cache_bust(url: str, *, now_ms: int | None = None) -> str:
    """Append a `t=<epoch ms>` parameter so intermediaries cannot serve stale text."""

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}t={now_ms}"


async def fetch_text(client: httpx.AsyncClient, url: str) -> str:
    """Fetch a feed's raw text, turning every failure into `FeedFetchError`."""

    try:
        resp = await client.get(add_cache_bust(url), headers=_NO_CACHE_HEADERS, follow_redirects=True)
        resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FeedFetchError(url, f"HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise FeedFetchError(url, str(exc) or type(exc).__name__) from exc

    logger.debug("Fetched %d bytes from %s", len(resp.content), url)
    return resp.text


async def load_feed(client: httpx.AsyncClient, url: str) -> list[Record]:
    """Fetch and parse one feed."""

    return parse_csv(await fetch_text(client, url))
