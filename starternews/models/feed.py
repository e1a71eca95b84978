from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SourceKind(str, Enum):
    RSS = "rss"
    ATOM = "atom"
    JSON_API = "json_api"


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    url: str
    kind: SourceKind = SourceKind.RSS
    display_name: str | None = None
    # JSON schema mapping used by the parser (gnews, newsapi, newsdata)
    provider: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.provider or self.url


class FetchErrorReason(str, Enum):
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    UNEXPECTED_CONTENT_TYPE = "unexpected_content_type"


@dataclass(frozen=True, slots=True)
class FetchOk:
    body: str
    content_type: str = ""
    # raw bytes as received, so XML parsers can honor the declared encoding
    content: bytes = b""

    @property
    def payload(self) -> str | bytes:
        return self.content or self.body


@dataclass(frozen=True, slots=True)
class FetchError:
    reason: FetchErrorReason
    status_code: int | None = None
    detail: str = ""

    def describe(self) -> str:
        if self.reason is FetchErrorReason.HTTP_ERROR and self.status_code:
            return f"{self.reason.value}:{self.status_code}"
        return self.reason.value


RawFetchResult = FetchOk | FetchError
