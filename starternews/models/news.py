from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .feed import SourceKind


class NewsItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, description="Article headline")
    url: str = Field(min_length=1, description="Absolute article URL")
    summary: str = Field(default="", description="Teaser or generated summary")
    source_name: str = Field(description="Publisher display name")
    category: str = Field(description="Requested category tag")
    language: str = Field(description="Detected or requested language code")
    published_at: datetime | None = Field(
        default=None, description="Publication timestamp in UTC if available"
    )
    image_url: str | None = Field(default=None, description="Lead image URL")
    read_time_minutes: int = Field(default=1, ge=1)

    @field_validator("url")
    @classmethod
    def _require_absolute(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must be an absolute http(s) URL")
        return value


class SourceStatus(BaseModel):
    name: str = Field(description="Source display name")
    kind: SourceKind
    ok: bool = Field(description="Whether the source yielded at least one item")
    item_count: int = 0
    error: str | None = Field(default=None, description="Fetch failure reason")


class AggregationMeta(BaseModel):
    requested_category: str
    requested_country: str
    requested_language: str
    query: str | None = None
    total_before_truncation: int = 0
    returned_count: int = 0
    sources_attempted: int = 0
    sources_failed: int = 0
    summarized: int = Field(default=0, description="Items with a generated summary")
    warning: str | None = None
    sources: list[SourceStatus] = Field(default_factory=list)


class AggregationResult(BaseModel):
    items: list[NewsItem] = Field(default_factory=list)
    meta: AggregationMeta
