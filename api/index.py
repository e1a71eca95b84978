from __future__ import annotations

from fastapi import Depends, FastAPI, Query
from fastapi.responses import ORJSONResponse
from mangum import Mangum

from starternews.config import configure_logging
from starternews.http_client import shutdown_http_client
from starternews.models import AggregationResult
from starternews.services import NewsAggregator

configure_logging()

app = FastAPI(
    title="Starter News API",
    version="0.1.0",
    description=(
        "Aggregated headlines from RSS feeds and news APIs, deduplicated and "
        "optionally summarized."
    ),
    default_response_class=ORJSONResponse,
)


def get_news_aggregator() -> NewsAggregator:
    return NewsAggregator()


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/news", tags=["news"], response_model=AggregationResult)
async def news(
    category: str | None = Query(None, description="News category, e.g. world"),
    topic: str | None = Query(None, description="Alias for category"),
    country: str | None = Query(None, description="Region code, e.g. bd"),
    language: str | None = Query(None, description="Default language tag"),
    q: str | None = Query(None, description="Case-insensitive search text"),
    query: str | None = Query(None, description="Alias for q"),
    limit: int | None = Query(
        None, description="Maximum items; clamped into the allowed range"
    ),
    aggregator: NewsAggregator = Depends(get_news_aggregator),
):
    return await aggregator.aggregate(
        category=category or topic,
        language=language,
        query=q or query,
        limit=limit,
        country=country,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await shutdown_http_client()


handler = Mangum(app)
