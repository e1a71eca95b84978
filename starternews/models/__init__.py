from .feed import (
    FetchError,
    FetchErrorReason,
    FetchOk,
    RawFetchResult,
    SourceDescriptor,
    SourceKind,
)
from .news import AggregationMeta, AggregationResult, NewsItem, SourceStatus

__all__ = [
    "AggregationMeta",
    "AggregationResult",
    "FetchError",
    "FetchErrorReason",
    "FetchOk",
    "NewsItem",
    "RawFetchResult",
    "SourceDescriptor",
    "SourceKind",
    "SourceStatus",
]
