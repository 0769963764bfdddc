"""Garmin LiveTrack URL parsing and short-link expansion."""

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from livegrid.core.config import settings
from livegrid.core.errors import UrlExpansionError
from livegrid.schemas.tracking import ExpandUrlResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedUrl:
    session_id: str
    token: str


def _hostname(url: str) -> str | None:
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if parts.scheme not in ("http", "https"):
        return None
    return parts.hostname


def is_short_link(url: str) -> bool:
    return _hostname(url) in settings.short_link_hosts


def is_valid_livetrack_url(url: str) -> bool:
    host = _hostname(url)
    return host is not None and (
        host in settings.livetrack_hosts or host in settings.short_link_hosts
    )


def parse_livetrack_url(url: str) -> ParsedUrl | None:
    """Extract (session_id, token) from a long-form LiveTrack URL.

    https://livetrack.garmin.com/session/{session_id}/token/{token}

    Returns None for any other host or a path without both segments.
    """
    if _hostname(url) not in settings.livetrack_hosts:
        return None

    segments = urlsplit(url.strip()).path.split("/")
    try:
        session_idx = segments.index("session")
        token_idx = segments.index("token")
    except ValueError:
        return None

    if session_idx + 1 >= len(segments) or token_idx + 1 >= len(segments):
        return None
    session_id = segments[session_idx + 1]
    token = segments[token_idx + 1]
    if not session_id or not token:
        return None
    return ParsedUrl(session_id=session_id, token=token)


async def expand_url(client: httpx.AsyncClient, url: str) -> str:
    """Follow redirects with a HEAD request and return the final URL."""
    try:
        r = await client.head(url, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise UrlExpansionError(f"Failed to expand URL: {e}") from e
    return str(r.url)


async def resolve_livetrack_url(client: httpx.AsyncClient, url: str) -> ParsedUrl | None:
    """Parse a short or long LiveTrack URL. Never raises; None means unusable."""
    url = url.strip()
    if not is_valid_livetrack_url(url):
        return None
    if is_short_link(url):
        try:
            url = await expand_url(client, url)
        except UrlExpansionError as e:
            logger.warning("Short link %s could not be expanded: %s", url, e)
            return None
    return parse_livetrack_url(url)


async def expand_urls_batch(client: httpx.AsyncClient, urls: list[str]) -> list[ExpandUrlResult]:
    """Expand every URL concurrently; one result per input, in input order."""
    outcomes = await asyncio.gather(
        *(expand_url(client, u) for u in urls), return_exceptions=True
    )
    results: list[ExpandUrlResult] = []
    for url, outcome in zip(urls, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            results.append(ExpandUrlResult(original_url=url, success=False, error=str(outcome)))
        else:
            results.append(ExpandUrlResult(original_url=url, success=True, expanded_url=outcome))
    return results
