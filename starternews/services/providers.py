from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode

import httpx

from ..config import Settings, url_root
from ..models.feed import FetchError, RawFetchResult, SourceDescriptor, SourceKind
from ..models.news import NewsItem
from .fetcher import DEFAULT_SOURCE_TIMEOUT, fetch_source
from .parser import parse

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderOutcome:
    source: SourceDescriptor
    result: RawFetchResult
    items: list[NewsItem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.items)


@dataclass(slots=True)
class NewsProvider:
    """A keyed JSON news API tried as one link of a fallback chain."""

    name: str
    api_key: str | None
    base_url: str
    max_items: int = 10

    schema = ""

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def build_source(
        self, category: str, country: str, language: str, query: str | None
    ) -> SourceDescriptor:
        return SourceDescriptor(
            url=f"{self.base_url}?{urlencode(self.params(category, country, language, query))}",
            kind=SourceKind.JSON_API,
            display_name=self.name,
            provider=self.schema,
        )

    def params(
        self, category: str, country: str, language: str, query: str | None
    ) -> dict[str, str]:
        raise NotImplementedError

    async def try_fetch(
        self,
        client: httpx.AsyncClient,
        *,
        category: str,
        country: str,
        language: str,
        query: str | None = None,
        timeout: float = DEFAULT_SOURCE_TIMEOUT,
    ) -> ProviderOutcome:
        source = self.build_source(category, country, language, query)
        result = await fetch_source(client, source, timeout)
        items = parse(result, source, language=language, category=category)
        if isinstance(result, FetchError):
            logger.info("Provider %s failed: %s", self.name, result.describe())
        elif not items:
            logger.info("Provider %s returned no usable articles", self.name)
        return ProviderOutcome(source=source, result=result, items=items)


_GNEWS_CATEGORIES = {
    "world": "world",
    "business": "business",
    "sports": "sports",
    "technology": "technology",
    "health": "health",
    "bangladesh": "nation",
}

_NEWSAPI_CATEGORIES = {
    "world": "general",
    "business": "business",
    "sports": "sports",
    "technology": "technology",
    "health": "health",
    "bangladesh": "general",
}

_NEWSDATA_CATEGORIES = {
    "world": "world",
    "business": "business",
    "sports": "sports",
    "technology": "technology",
    "health": "health",
    "bangladesh": "top",
}


class GNewsProvider(NewsProvider):
    schema = "gnews"

    def params(
        self, category: str, country: str, language: str, query: str | None
    ) -> dict[str, str]:
        params = {
            "category": _GNEWS_CATEGORIES.get(category, "general"),
            "lang": language,
            "country": country,
            "max": str(self.max_items),
            "apikey": self.api_key or "",
        }
        if query:
            params["q"] = query
        return params


class NewsApiProvider(NewsProvider):
    schema = "newsapi"

    def params(
        self, category: str, country: str, language: str, query: str | None
    ) -> dict[str, str]:
        params = {
            "category": _NEWSAPI_CATEGORIES.get(category, "general"),
            "country": country,
            "pageSize": str(self.max_items),
            "apiKey": self.api_key or "",
        }
        if query:
            params["q"] = query
        return params


class NewsDataProvider(NewsProvider):
    schema = "newsdata"

    def params(
        self, category: str, country: str, language: str, query: str | None
    ) -> dict[str, str]:
        params = {
            "category": _NEWSDATA_CATEGORIES.get(category, "top"),
            "country": country,
            "language": language,
            "apikey": self.api_key or "",
        }
        if query:
            params["q"] = query
        return params


def configured_providers(settings: Settings) -> list[NewsProvider]:
    """Return the keyed providers in priority order, skipping missing keys."""
    providers: list[NewsProvider] = [
        GNewsProvider(
            name="GNews",
            api_key=settings.gnews_api_key,
            base_url=f"{url_root(settings.gnews_base_url)}/top-headlines",
        ),
        NewsApiProvider(
            name="NewsAPI",
            api_key=settings.news_api_key,
            base_url=f"{url_root(settings.news_api_base_url)}/top-headlines",
        ),
        NewsDataProvider(
            name="NewsData",
            api_key=settings.newsdata_api_key,
            base_url=f"{url_root(settings.newsdata_base_url)}/news",
        ),
    ]
    return [provider for provider in providers if provider.enabled]


async def fetch_first_available(
    client: httpx.AsyncClient,
    providers: list[NewsProvider],
    *,
    category: str,
    country: str,
    language: str,
    query: str | None = None,
    timeout: float = DEFAULT_SOURCE_TIMEOUT,
) -> list[ProviderOutcome]:
    """Walk the provider chain until one yields items.

    Every attempted provider is reported so callers can account for the
    failed links as well as the winner.
    """
    outcomes: list[ProviderOutcome] = []
    for provider in providers:
        outcome = await provider.try_fetch(
            client,
            category=category,
            country=country,
            language=language,
            query=query,
            timeout=timeout,
        )
        outcomes.append(outcome)
        if outcome.ok:
            break
    return outcomes
