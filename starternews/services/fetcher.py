from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import httpx

from ..http_client import accept_header
from ..models.feed import (
    FetchError,
    FetchErrorReason,
    FetchOk,
    RawFetchResult,
    SourceDescriptor,
    SourceKind,
)

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_TIMEOUT = 8.0

_XML_PREFIXES = ("<?xml", "<rss", "<feed", "<rdf:rdf")


async def fetch_all(
    client: httpx.AsyncClient,
    sources: Sequence[SourceDescriptor],
    timeout: float = DEFAULT_SOURCE_TIMEOUT,
) -> list[tuple[SourceDescriptor, RawFetchResult]]:
    """Fetch every source concurrently, pairing each with its outcome.

    Results follow the order of ``sources`` regardless of completion order,
    and a failing source only ever produces a :class:`FetchError`.
    """
    tasks = [fetch_source(client, source, timeout) for source in sources]
    results = await asyncio.gather(*tasks, return_exceptions=True)
    paired: list[tuple[SourceDescriptor, RawFetchResult]] = []
    for source, result in zip(sources, results, strict=True):
        if isinstance(result, (FetchOk, FetchError)):
            paired.append((source, result))
        else:
            logger.warning("Unexpected failure fetching %s: %r", source.label, result)
            paired.append(
                (
                    source,
                    FetchError(FetchErrorReason.NETWORK_ERROR, detail=str(result)),
                )
            )
    return paired


async def fetch_source(
    client: httpx.AsyncClient,
    source: SourceDescriptor,
    timeout: float = DEFAULT_SOURCE_TIMEOUT,
) -> RawFetchResult:
    try:
        response = await asyncio.wait_for(
            client.get(source.url, headers=accept_header(source.kind)),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.warning("Timed out fetching %s after %.1fs", source.label, timeout)
        return FetchError(FetchErrorReason.TIMEOUT, detail=f"timeout after {timeout}s")
    except httpx.HTTPError as exc:
        logger.warning("Network error fetching %s: %s", source.label, exc)
        return FetchError(FetchErrorReason.NETWORK_ERROR, detail=str(exc))

    if not response.is_success:
        logger.warning(
            "HTTP %s fetching %s", response.status_code, source.label
        )
        return FetchError(
            FetchErrorReason.HTTP_ERROR,
            status_code=response.status_code,
            detail=response.reason_phrase,
        )

    content_type = response.headers.get("content-type", "")
    body = response.text
    if not _content_matches(source.kind, content_type, body):
        logger.warning(
            "Unexpected content type %r from %s", content_type, source.label
        )
        return FetchError(
            FetchErrorReason.UNEXPECTED_CONTENT_TYPE, detail=content_type
        )

    logger.debug("Fetched %s (%d bytes)", source.label, len(body))
    return FetchOk(body=body, content_type=content_type, content=response.content)


def _content_matches(kind: SourceKind, content_type: str, body: str) -> bool:
    declared = content_type.split(";", 1)[0].strip().lower()
    head = body.lstrip("\ufeff \t\r\n")[:64].lower()
    if kind is SourceKind.JSON_API:
        if "json" in declared:
            return True
        return not declared.endswith(("html", "xml")) and head.startswith(("{", "["))
    if "html" in declared:
        # some publishers mislabel feeds as text/html
        return head.startswith(_XML_PREFIXES)
    if "json" in declared:
        return False
    return True
