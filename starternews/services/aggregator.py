from __future__ import annotations

import asyncio
import logging
import re
import unicodedata
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from ..config import Settings, get_settings
from ..feeds import FEED_TABLE, FeedTable, canonical_category, select_sources
from ..http_client import get_http_client
from ..models.feed import FetchError, RawFetchResult, SourceDescriptor
from ..models.news import AggregationMeta, AggregationResult, NewsItem, SourceStatus
from .fetcher import fetch_all
from .parser import parse
from .providers import NewsProvider, configured_providers, fetch_first_available
from .summarizer import SummaryProvider, configured_summarizers, summarize_items

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_url(url: str) -> str:
    parts = urlsplit(url.strip())
    path = parts.path.rstrip("/")
    return f"{parts.scheme}://{parts.netloc}{path}".lower()


def title_fingerprint(title: str, length: int = 60) -> str:
    # drop punctuation and symbols only; combining marks carry Bengali vowels
    text = "".join(
        char
        for char in title.casefold()
        if not unicodedata.category(char).startswith(("P", "S"))
    )
    return _WHITESPACE_RE.sub(" ", text).strip()[:length]


def dedupe_items(items: Iterable[NewsItem], title_length: int = 60) -> list[NewsItem]:
    """Drop later items sharing a normalized URL or title prefix with an earlier one."""
    seen_urls: set[str] = set()
    seen_titles: set[str] = set()
    unique: list[NewsItem] = []
    for item in items:
        url_key = normalize_url(item.url)
        title_key = title_fingerprint(item.title, title_length)
        if url_key in seen_urls or (title_key and title_key in seen_titles):
            continue
        seen_urls.add(url_key)
        if title_key:
            seen_titles.add(title_key)
        unique.append(item)
    return unique


def filter_items(items: Iterable[NewsItem], query: str | None) -> list[NewsItem]:
    needle = (query or "").strip().casefold()
    if not needle:
        return list(items)
    return [
        item
        for item in items
        if needle in item.title.casefold()
        or needle in item.summary.casefold()
        or needle in item.source_name.casefold()
    ]


def sort_items(items: Iterable[NewsItem]) -> list[NewsItem]:
    """Newest first; undated items follow in their original order."""

    def key(item: NewsItem) -> tuple[int, float]:
        if item.published_at is None:
            return (1, 0.0)
        return (0, -item.published_at.timestamp())

    return sorted(items, key=key)


def clamp_limit(
    limit: int | None, minimum: int = 3, maximum: int = 50, default: int = 12
) -> int:
    if limit is None:
        limit = default
    return max(minimum, min(maximum, limit))


@dataclass(slots=True)
class _SourceBatch:
    source: SourceDescriptor
    result: RawFetchResult
    items: list[NewsItem]

    def status(self) -> SourceStatus:
        error = None
        if isinstance(self.result, FetchError):
            error = self.result.describe()
        elif not self.items:
            error = "no_items"
        return SourceStatus(
            name=self.source.label,
            kind=self.source.kind,
            ok=bool(self.items),
            item_count=len(self.items),
            error=error,
        )


@dataclass(slots=True)
class NewsAggregator:
    settings: Settings | None = None
    client: httpx.AsyncClient | None = None
    feed_table: FeedTable | None = None
    providers: list[NewsProvider] | None = None
    summarizers: list[SummaryProvider] | None = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()
        if self.feed_table is None:
            self.feed_table = FEED_TABLE
        if self.providers is None:
            self.providers = configured_providers(self.settings)
        if self.summarizers is None:
            self.summarizers = configured_summarizers(self.settings)

    async def aggregate(
        self,
        category: str | None = None,
        language: str | None = None,
        query: str | None = None,
        limit: int | None = None,
        country: str | None = None,
    ) -> AggregationResult:
        """Build the news envelope for one request. Never raises."""
        settings = self.settings
        category = (category or settings.default_category).strip().lower()
        language = (language or settings.default_language).strip().lower()
        country = (country or settings.default_country).strip().lower()
        query = (query or "").strip() or None
        try:
            return await self._aggregate(category, language, query, limit, country)
        except Exception:
            logger.exception("News aggregation failed for category=%s", category)
            return AggregationResult(
                items=[],
                meta=AggregationMeta(
                    requested_category=category,
                    requested_country=country,
                    requested_language=language,
                    query=query,
                    warning="News is temporarily unavailable. Please try again shortly.",
                ),
            )

    async def _aggregate(
        self,
        category: str,
        language: str,
        query: str | None,
        limit: int | None,
        country: str,
    ) -> AggregationResult:
        settings = self.settings
        topic = canonical_category(category, self.feed_table)
        sources = select_sources(
            topic, country, table=self.feed_table, max_sources=settings.max_sources
        )
        client = self.client or await get_http_client()

        batches = await self._collect(client, sources, topic, country, language, query)
        merged = [item for batch in batches for item in batch.items]
        unique = dedupe_items(merged, settings.title_fingerprint_length)
        matched = filter_items(unique, query)
        ranked = sort_items(matched)
        bounded = clamp_limit(
            limit, settings.min_limit, settings.max_limit, settings.default_limit
        )
        selected = ranked[:bounded]
        items = await summarize_items(
            client,
            selected,
            self.summarizers or [],
            timeout=settings.summarize_timeout,
            concurrency=settings.summarize_concurrency,
        )

        statuses = [batch.status() for batch in batches]
        failed = sum(1 for status in statuses if not status.ok)
        logger.info(
            "Aggregated %s/%s: %d sources (%d failed), %d merged, %d unique, %d returned",
            topic,
            country,
            len(statuses),
            failed,
            len(merged),
            len(unique),
            len(items),
        )
        return AggregationResult(
            items=items,
            meta=AggregationMeta(
                requested_category=category,
                requested_country=country,
                requested_language=language,
                query=query,
                total_before_truncation=len(ranked),
                returned_count=len(items),
                sources_attempted=len(statuses),
                sources_failed=failed,
                summarized=sum(
                    1 for before, after in zip(selected, items) if before is not after
                ),
                warning=_build_warning(
                    len(statuses), failed, len(items), len(unique), query
                ),
                sources=statuses,
            ),
        )

    async def _collect(
        self,
        client: httpx.AsyncClient,
        sources: Sequence[SourceDescriptor],
        topic: str,
        country: str,
        language: str,
        query: str | None,
    ) -> list[_SourceBatch]:
        settings = self.settings
        feeds, chain = await asyncio.gather(
            fetch_all(client, sources, settings.source_timeout),
            fetch_first_available(
                client,
                self.providers or [],
                category=topic,
                country=country,
                language=language,
                query=query,
                timeout=settings.source_timeout,
            ),
            return_exceptions=True,
        )
        if isinstance(feeds, BaseException):
            logger.error("Feed fan-out failed: %r", feeds)
            feeds = []
        if isinstance(chain, BaseException):
            logger.error("Provider chain failed: %r", chain)
            chain = []

        batches = [
            _SourceBatch(
                source=source,
                result=result,
                items=parse(result, source, language=language, category=topic),
            )
            for source, result in feeds
        ]
        for outcome in chain:
            batches.append(
                _SourceBatch(
                    source=outcome.source, result=outcome.result, items=outcome.items
                )
            )
        return batches


def _build_warning(
    attempted: int, failed: int, returned: int, available: int, query: str | None
) -> str | None:
    messages: list[str] = []
    if attempted == 0:
        messages.append("No news sources are configured for this category.")
    elif failed:
        messages.append(f"{failed} of {attempted} sources could not be loaded.")
    if returned == 0:
        if query and available:
            messages.append(f'No stories matched "{query}".')
        else:
            messages.append("No stories are available right now.")
    return " ".join(messages) or None
