"""Normalization of RSS, Atom and JSON news payloads into :class:`NewsItem`.

Every parser is tolerant: malformed entries are skipped, and a payload
that cannot be recognized at all produces an empty list.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

import orjson
from bs4 import BeautifulSoup
from bs4.element import Tag
from dateutil import parser as date_parser
from pydantic import ValidationError

from ..models.feed import FetchOk, RawFetchResult, SourceDescriptor, SourceKind
from ..models.news import NewsItem

logger = logging.getLogger(__name__)

LOCAL_LANGUAGE = "bn"
MAX_SUMMARY_CHARS = 400
WORDS_PER_MINUTE = 200

_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_BENGALI_RE = re.compile(r"[\u0980-\u09FF]")

# &amp; goes last so "&amp;lt;" decodes to "&lt;" rather than "<"
_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&#039;", "'"),
    ("&apos;", "'"),
    ("&nbsp;", " "),
    ("&amp;", "&"),
)

KNOWN_HOSTS: dict[str, str] = {
    "bbc.co.uk": "BBC News",
    "bbc.com": "BBC News",
    "aljazeera.com": "Al Jazeera",
    "theguardian.com": "The Guardian",
    "nytimes.com": "The New York Times",
    "npr.org": "NPR",
    "reuters.com": "Reuters",
    "apnews.com": "AP News",
    "cnbc.com": "CNBC",
    "dw.com": "DW",
    "espn.com": "ESPN",
    "espncricinfo.com": "ESPNcricinfo",
    "skysports.com": "Sky Sports",
    "theverge.com": "The Verge",
    "techcrunch.com": "TechCrunch",
    "wired.com": "Wired",
    "who.int": "WHO",
    "prothomalo.com": "Prothom Alo",
    "en.prothomalo.com": "Prothom Alo",
    "thedailystar.net": "The Daily Star",
    "bdnews24.com": "bdnews24",
    "dhakatribune.com": "Dhaka Tribune",
    "tbsnews.net": "The Business Standard",
    "news.google.com": "Google News",
}


def clean_text(value: str | None) -> str:
    if not value:
        return ""
    text = _CDATA_RE.sub(lambda match: match.group(1), value)
    text = _TAG_RE.sub(" ", text)
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate_text(text: str, limit: int = MAX_SUMMARY_CHARS) -> str:
    if len(text) <= limit:
        return text
    cut = text[:limit].rsplit(" ", 1)[0].rstrip(" ,.;:")
    return f"{cut}…"


def detect_language(text: str, default: str) -> str:
    """Tag Bengali-script text as ``bn``; everything else keeps ``default``."""
    if _BENGALI_RE.search(text or ""):
        return LOCAL_LANGUAGE
    return default


def source_name_for_url(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    if not host:
        return "Unknown"
    if host in KNOWN_HOSTS:
        return KNOWN_HOSTS[host]
    parts = host.split(".")
    for start in range(1, len(parts) - 1):
        suffix = ".".join(parts[start:])
        if suffix in KNOWN_HOSTS:
            return KNOWN_HOSTS[suffix]
    return parts[0].replace("-", " ").title()


def estimate_read_time(text: str) -> int:
    words = len(text.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _absolute_url(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    parsed = urlparse(candidate)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return candidate
    return None


def build_item(
    *,
    title: str,
    url: str | None,
    summary: str,
    body: str,
    source_name: str | None,
    category: str,
    language: str,
    published_at: datetime | None,
    image_url: str | None,
) -> NewsItem | None:
    """Assemble a canonical item, or ``None`` when title or URL is missing."""
    title = clean_text(title)
    url = _absolute_url(url)
    if not title or not url:
        return None
    summary = clean_text(summary)
    full_text = clean_text(body) or summary
    try:
        return NewsItem(
            title=title,
            url=url,
            summary=truncate_text(summary),
            source_name=source_name or source_name_for_url(url),
            category=category,
            language=detect_language(f"{title} {summary}", language),
            published_at=published_at,
            image_url=_absolute_url(image_url),
            read_time_minutes=estimate_read_time(f"{title} {full_text}"),
        )
    except ValidationError:
        logger.debug("Dropping invalid item %r", url)
        return None


class FeedParser:
    """Turns a raw payload from one source into canonical items."""

    def parse(
        self,
        body: str | bytes,
        source: SourceDescriptor,
        *,
        language: str,
        category: str,
    ) -> list[NewsItem]:
        raise NotImplementedError


def _qualified_name(tag: Tag) -> str:
    if tag.prefix and ":" not in tag.name:
        return f"{tag.prefix}:{tag.name}"
    return tag.name


def _find(entry: Tag, name: str, recursive: bool = False) -> Tag | None:
    return entry.find(lambda tag: _qualified_name(tag) == name, recursive=recursive)


def _find_text(entry: Tag, *names: str) -> str:
    for name in names:
        tag = _find(entry, name)
        if tag is None:
            continue
        text = tag.get_text()
        if clean_text(text):
            return text
    return ""


def _find_attr(entry: Tag, attr: str, *names: str) -> str | None:
    for name in names:
        for tag in entry.find_all(
            lambda candidate, name=name: _qualified_name(candidate) == name
        ):
            value = tag.get(attr)
            if value:
                return value
    return None


class _XmlFeedParser(FeedParser):
    entry_name: str = ""

    def parse(
        self,
        body: str | bytes,
        source: SourceDescriptor,
        *,
        language: str,
        category: str,
    ) -> list[NewsItem]:
        soup = BeautifulSoup(body.strip(), "xml")
        entries = soup.find_all(
            lambda tag: _qualified_name(tag) == self.entry_name
        )
        items: list[NewsItem] = []
        for entry in entries:
            item = self._build(entry, source, language=language, category=category)
            if item is not None:
                items.append(item)
        return items

    def _build(
        self,
        entry: Tag,
        source: SourceDescriptor,
        *,
        language: str,
        category: str,
    ) -> NewsItem | None:
        raise NotImplementedError


class RssParser(_XmlFeedParser):
    entry_name = "item"

    def parse(
        self,
        body: str | bytes,
        source: SourceDescriptor,
        *,
        language: str,
        category: str,
    ) -> list[NewsItem]:
        items = super().parse(body, source, language=language, category=category)
        marker = b"<entry" if isinstance(body, bytes) else "<entry"
        if not items and marker in body:
            return AtomParser().parse(
                body, source, language=language, category=category
            )
        return items

    def _build(
        self,
        entry: Tag,
        source: SourceDescriptor,
        *,
        language: str,
        category: str,
    ) -> NewsItem | None:
        link = clean_text(_find_text(entry, "link")) or clean_text(
            _find_text(entry, "guid")
        )
        return build_item(
            title=_find_text(entry, "title"),
            url=link,
            summary=_find_text(entry, "description", "content:encoded", "content"),
            body=_find_text(entry, "content:encoded", "content", "description"),
            source_name=None,
            category=category,
            language=language,
            published_at=parse_datetime(
                clean_text(_find_text(entry, "pubDate", "dc:date"))
            ),
            image_url=_find_attr(
                entry, "url", "media:content", "enclosure", "media:thumbnail"
            ),
        )


class AtomParser(_XmlFeedParser):
    entry_name = "entry"

    def _build(
        self,
        entry: Tag,
        source: SourceDescriptor,
        *,
        language: str,
        category: str,
    ) -> NewsItem | None:
        return build_item(
            title=_find_text(entry, "title"),
            url=self._link(entry),
            summary=_find_text(entry, "summary", "content"),
            body=_find_text(entry, "content", "summary"),
            source_name=None,
            category=category,
            language=language,
            published_at=parse_datetime(
                clean_text(_find_text(entry, "published", "updated"))
            ),
            image_url=_find_attr(entry, "url", "media:content", "media:thumbnail"),
        )

    @staticmethod
    def _link(entry: Tag) -> str | None:
        fallback: str | None = None
        for tag in entry.find_all(
            lambda candidate: _qualified_name(candidate) == "link", recursive=False
        ):
            href = tag.get("href")
            if not href:
                continue
            if tag.get("rel", "alternate") == "alternate":
                return href
            fallback = fallback or href
        return fallback or clean_text(_find_text(entry, "id")) or None


@dataclass(frozen=True, slots=True)
class JsonSchema:
    items_key: str
    url_key: str
    image_key: str
    date_key: str
    summary_keys: tuple[str, ...] = ("description", "content")


JSON_SCHEMAS: dict[str, JsonSchema] = {
    "gnews": JsonSchema(
        items_key="articles", url_key="url", image_key="image", date_key="publishedAt"
    ),
    "newsapi": JsonSchema(
        items_key="articles",
        url_key="url",
        image_key="urlToImage",
        date_key="publishedAt",
    ),
    "newsdata": JsonSchema(
        items_key="results", url_key="link", image_key="image_url", date_key="pubDate"
    ),
}


class JsonProviderParser(FeedParser):
    def parse(
        self,
        body: str | bytes,
        source: SourceDescriptor,
        *,
        language: str,
        category: str,
    ) -> list[NewsItem]:
        schema = JSON_SCHEMAS.get(source.provider or "", JSON_SCHEMAS["newsapi"])
        payload = orjson.loads(body)
        entries = payload.get(schema.items_key) if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            return []
        items: list[NewsItem] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            item = build_item(
                title=_as_str(entry.get("title")),
                url=entry.get(schema.url_key),
                summary=_first_str(entry, schema.summary_keys),
                body=_first_str(entry, tuple(reversed(schema.summary_keys))),
                source_name=_source_name(entry),
                category=category,
                language=language,
                published_at=parse_datetime(_as_str(entry.get(schema.date_key))),
                image_url=entry.get(schema.image_key),
            )
            if item is not None:
                items.append(item)
        return items


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _first_str(entry: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = _as_str(entry.get(key))
        if clean_text(value):
            return value
    return ""


def _source_name(entry: dict[str, Any]) -> str | None:
    source = entry.get("source")
    if isinstance(source, dict) and _as_str(source.get("name")).strip():
        return source["name"].strip()
    for key in ("source_name", "source_id"):
        value = _as_str(entry.get(key)).strip()
        if value:
            return value
    return None


_PARSERS: dict[SourceKind, FeedParser] = {
    SourceKind.RSS: RssParser(),
    SourceKind.ATOM: AtomParser(),
    SourceKind.JSON_API: JsonProviderParser(),
}


def get_parser(kind: SourceKind) -> FeedParser:
    return _PARSERS[kind]


def parse(
    result: RawFetchResult,
    source: SourceDescriptor,
    *,
    language: str,
    category: str,
) -> list[NewsItem]:
    if not isinstance(result, FetchOk):
        return []
    try:
        return get_parser(source.kind).parse(
            result.payload, source, language=language, category=category
        )
    except Exception as exc:  # any malformed payload yields no items
        logger.warning("Could not parse %s: %s", source.label, exc)
        return []
