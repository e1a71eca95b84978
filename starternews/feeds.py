from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .models.feed import SourceDescriptor, SourceKind

FeedTable = Mapping[tuple[str, str | None], tuple[SourceDescriptor, ...]]

DEFAULT_CATEGORY = "world"
DEFAULT_MAX_SOURCES = 8

CATEGORY_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "general": "world",
        "top": "world",
        "economy": "business",
        "finance": "business",
        "football": "sports",
        "cricket": "sports",
        "sport": "sports",
        "tech": "technology",
        "science": "technology",
        "bd": "bangladesh",
        "local": "bangladesh",
    }
)


def _rss(url: str, name: str) -> SourceDescriptor:
    return SourceDescriptor(url=url, kind=SourceKind.RSS, display_name=name)


def _atom(url: str, name: str) -> SourceDescriptor:
    return SourceDescriptor(url=url, kind=SourceKind.ATOM, display_name=name)


DEFAULT_SOURCES: tuple[SourceDescriptor, ...] = (
    _rss("https://feeds.bbci.co.uk/news/world/rss.xml", "BBC News"),
    _rss("https://www.aljazeera.com/xml/rss/all.xml", "Al Jazeera"),
    _rss("https://www.theguardian.com/world/rss", "The Guardian"),
)

FEED_TABLE: FeedTable = MappingProxyType(
    {
        ("world", None): DEFAULT_SOURCES
        + (
            _rss("https://feeds.npr.org/1004/rss.xml", "NPR"),
            _rss(
                "https://rss.nytimes.com/services/xml/rss/nyt/World.xml",
                "The New York Times",
            ),
            _rss("https://rss.dw.com/rdf/rss-en-world", "DW"),
        ),
        ("world", "bd"): (
            _rss("https://www.thedailystar.net/world/rss.xml", "The Daily Star"),
            _rss("https://www.dhakatribune.com/feed/world", "Dhaka Tribune"),
        ),
        ("business", None): (
            _rss("https://feeds.bbci.co.uk/news/business/rss.xml", "BBC Business"),
            _rss(
                "https://www.cnbc.com/id/100003114/device/rss/rss.html", "CNBC"
            ),
            _rss("https://www.theguardian.com/business/rss", "The Guardian"),
            _rss("https://www.aljazeera.com/xml/rss/economy.xml", "Al Jazeera"),
        ),
        ("business", "bd"): (
            _rss(
                "https://www.thedailystar.net/business/rss.xml", "The Daily Star"
            ),
            _rss("https://www.tbsnews.net/economy/rss.xml", "The Business Standard"),
            _rss("https://www.dhakatribune.com/feed/business", "Dhaka Tribune"),
        ),
        ("sports", None): (
            _rss("https://feeds.bbci.co.uk/sport/rss.xml", "BBC Sport"),
            _rss("https://www.espn.com/espn/rss/news", "ESPN"),
            _rss(
                "https://www.espncricinfo.com/rss/content/story/feeds/0.xml",
                "ESPNcricinfo",
            ),
            _rss("https://www.skysports.com/rss/12040", "Sky Sports"),
        ),
        ("sports", "bd"): (
            _rss("https://www.thedailystar.net/sports/rss.xml", "The Daily Star"),
            _rss("https://www.prothomalo.com/feed/sports", "Prothom Alo"),
        ),
        ("technology", None): (
            _rss("https://feeds.bbci.co.uk/news/technology/rss.xml", "BBC Technology"),
            _atom("https://www.theverge.com/rss/index.xml", "The Verge"),
            _rss("https://techcrunch.com/feed/", "TechCrunch"),
            _rss("https://www.wired.com/feed/rss", "Wired"),
            _atom("https://hnrss.org/frontpage?format=atom", "Hacker News"),
        ),
        ("technology", "bd"): (
            _rss("https://www.thedailystar.net/tech-startup/rss.xml", "The Daily Star"),
        ),
        ("health", None): (
            _rss("https://feeds.bbci.co.uk/news/health/rss.xml", "BBC Health"),
            _rss("https://www.who.int/rss-feeds/news-english.xml", "WHO"),
            _rss("https://www.theguardian.com/society/health/rss", "The Guardian"),
        ),
        ("health", "bd"): (
            _rss("https://www.thedailystar.net/health/rss.xml", "The Daily Star"),
        ),
        ("bangladesh", None): (
            _rss("https://www.prothomalo.com/feed/", "Prothom Alo"),
            _rss("https://www.thedailystar.net/frontpage/rss.xml", "The Daily Star"),
            _rss(
                "https://bdnews24.com/?widgetName=rssfeed&widgetId=1150&getXmlFeed=true",
                "bdnews24",
            ),
            _rss("https://www.dhakatribune.com/feed/bangladesh", "Dhaka Tribune"),
            _rss("https://www.tbsnews.net/bangladesh/rss.xml", "The Business Standard"),
            _rss(
                "https://news.google.com/rss/search?q=Bangladesh&hl=en-BD&gl=BD&ceid=BD:en",
                "Google News",
            ),
        ),
    }
)


def canonical_category(category: str | None, table: FeedTable = FEED_TABLE) -> str:
    key = (category or "").strip().lower()
    key = CATEGORY_ALIASES.get(key, key)
    if (key, None) in table or any(k[0] == key for k in table):
        return key
    return DEFAULT_CATEGORY


def select_sources(
    category: str | None,
    country: str | None,
    *,
    table: FeedTable = FEED_TABLE,
    max_sources: int = DEFAULT_MAX_SOURCES,
) -> tuple[SourceDescriptor, ...]:
    """Return the ordered feed list for a category, preferring regional feeds.

    Regional sources for ``(category, country)`` come first, then generic
    sources for the category fill the remaining slots up to ``max_sources``.
    """
    key = canonical_category(category, table)
    region = (country or "").strip().lower() or None

    candidates: list[SourceDescriptor] = []
    if region is not None:
        candidates.extend(table.get((key, region), ()))
    candidates.extend(table.get((key, None), ()))
    if not candidates:
        candidates.extend(table.get((DEFAULT_CATEGORY, None), ()))

    selected: list[SourceDescriptor] = []
    seen: set[str] = set()
    for source in candidates:
        if source.url in seen:
            continue
        seen.add(source.url)
        selected.append(source)
        if len(selected) >= max(1, max_sources):
            break

    return tuple(selected) or DEFAULT_SOURCES[: max(1, max_sources)]
