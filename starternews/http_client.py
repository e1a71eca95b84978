"""Shared outbound HTTP client for feed, provider and summarizer calls."""

import asyncio

import httpx

from .config import Settings, get_settings
from .models.feed import SourceKind

FEED_ACCEPT: dict[SourceKind, str] = {
    SourceKind.RSS: "application/rss+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.5",
    SourceKind.ATOM: "application/atom+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.5",
    SourceKind.JSON_API: "application/json",
}

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()


def accept_header(kind: SourceKind) -> dict[str, str]:
    return {"Accept": FEED_ACCEPT[kind]}


def create_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    """Build a client tuned for polling many small feeds in parallel.

    Feeds routinely redirect between http/https and www/bare hosts, so
    redirects are followed. The per-request deadline is enforced by the
    fetcher; the client timeout only bounds individual socket phases.
    """
    settings = settings or get_settings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout, connect=min(5.0, settings.http_timeout)),
        limits=httpx.Limits(
            max_connections=settings.http_max_connections,
            max_keepalive_connections=settings.http_max_keepalive,
        ),
        headers={
            "User-Agent": settings.http_user_agent,
            "Accept": FEED_ACCEPT[SourceKind.RSS],
        },
        follow_redirects=True,
    )


async def get_http_client() -> httpx.AsyncClient:
    global _client

    if _client is None:
        async with _client_lock:
            if _client is None:
                _client = create_http_client()
    return _client


async def shutdown_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
