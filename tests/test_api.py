from fastapi.testclient import TestClient

from api.index import app, get_news_aggregator
from starternews.models import AggregationMeta, AggregationResult, NewsItem


class _RecordingAggregator:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    async def aggregate(self, **kwargs) -> AggregationResult:
        self.calls.append(kwargs)
        return AggregationResult(
            items=[
                NewsItem(
                    title="Dhaka floods",
                    url="https://www.thedailystar.net/news/floods",
                    summary="Water levels rise.",
                    source_name="The Daily Star",
                    category="bangladesh",
                    language="en",
                )
            ],
            meta=AggregationMeta(
                requested_category="bangladesh",
                requested_country="bd",
                requested_language="en",
                returned_count=1,
                sources_attempted=2,
                sources_failed=1,
                warning="1 of 2 sources could not be loaded.",
            ),
        )


def test_healthcheck() -> None:
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_news_endpoint_returns_envelope_with_aliases() -> None:
    recorder = _RecordingAggregator()
    app.dependency_overrides[get_news_aggregator] = lambda: recorder
    try:
        client = TestClient(app)
        response = client.get(
            "/news", params={"topic": "Local", "query": "dhaka", "limit": 500, "country": "bd"}
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    payload = response.json()
    assert payload["items"][0]["title"] == "Dhaka floods"
    assert payload["meta"]["sources_failed"] == 1
    assert payload["meta"]["warning"] == "1 of 2 sources could not be loaded."
    assert recorder.calls == [
        {
            "category": "Local",
            "language": None,
            "query": "dhaka",
            "limit": 500,
            "country": "bd",
        }
    ]


def test_news_endpoint_rejects_non_integer_limit() -> None:
    client = TestClient(app)

    response = client.get("/news", params={"limit": "many"})

    assert response.status_code == 422
