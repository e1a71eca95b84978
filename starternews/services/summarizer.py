from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import Settings, url_root
from ..models.news import NewsItem
from .parser import clean_text

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_TIMEOUT = 3.0
DEFAULT_SUMMARY_CONCURRENCY = 4

SYSTEM_PROMPT = (
    "You summarize news articles for a busy reader. Reply with at most two "
    "short sentences of plain text, no preamble."
)


@dataclass(slots=True)
class SummaryProvider:
    name: str
    api_key: str | None
    base_url: str
    model: str
    max_input_chars: int = 2000

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def try_summarize(
        self,
        client: httpx.AsyncClient,
        text: str,
        *,
        language: str = "en",
        timeout: float = DEFAULT_SUMMARY_TIMEOUT,
    ) -> str | None:
        """Return a summary, or ``None`` when the provider fails for any reason."""
        try:
            summary = await asyncio.wait_for(
                self._request(client, text[: self.max_input_chars], language),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.debug("Summarizer %s timed out after %.1fs", self.name, timeout)
            return None
        except httpx.HTTPError as exc:
            logger.debug("Summarizer %s request failed: %s", self.name, exc)
            return None
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.debug("Summarizer %s returned an unexpected payload: %s", self.name, exc)
            return None
        summary = clean_text(summary)
        return summary or None

    async def _request(
        self, client: httpx.AsyncClient, text: str, language: str
    ) -> str:
        raise NotImplementedError


class ChatCompletionSummarizer(SummaryProvider):
    """OpenAI-compatible ``/chat/completions`` endpoint (OpenAI, Groq)."""

    async def _request(
        self, client: httpx.AsyncClient, text: str, language: str
    ) -> str:
        instruction = "Summarize this news article"
        if language == "bn":
            instruction += " in Bangla"
        response = await client.post(
            f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": self.model,
                "temperature": 0.3,
                "max_tokens": 120,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f"{instruction}:\n\n{text}"},
                ],
            },
        )
        response.raise_for_status()
        payload: dict[str, Any] = response.json()
        return payload["choices"][0]["message"]["content"]


class HuggingFaceSummarizer(SummaryProvider):
    """Hugging Face inference API for seq2seq summarization models."""

    async def _request(
        self, client: httpx.AsyncClient, text: str, language: str
    ) -> str:
        response = await client.post(
            f"{self.base_url}/{self.model}",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"inputs": text, "parameters": {"max_length": 90, "min_length": 20}},
        )
        response.raise_for_status()
        payload = response.json()
        if isinstance(payload, list):
            payload = payload[0]
        return payload["summary_text"]


def configured_summarizers(settings: Settings) -> list[SummaryProvider]:
    if not settings.summarize_enabled:
        return []
    providers: list[SummaryProvider] = [
        ChatCompletionSummarizer(
            name="openai",
            api_key=settings.openai_api_key,
            base_url=url_root(settings.openai_base_url),
            model=settings.openai_model,
            max_input_chars=2500,
        ),
        ChatCompletionSummarizer(
            name="groq",
            api_key=settings.groq_api_key,
            base_url=url_root(settings.groq_base_url),
            model=settings.groq_model,
            max_input_chars=2000,
        ),
        HuggingFaceSummarizer(
            name="huggingface",
            api_key=settings.huggingface_api_key,
            base_url=url_root(settings.huggingface_base_url),
            model=settings.huggingface_model,
            max_input_chars=1000,
        ),
    ]
    return [provider for provider in providers if provider.enabled]


async def summarize_item(
    client: httpx.AsyncClient,
    item: NewsItem,
    providers: Sequence[SummaryProvider],
    *,
    timeout: float = DEFAULT_SUMMARY_TIMEOUT,
) -> NewsItem:
    if not item.summary:
        return item
    text = f"{item.title}\n\n{item.summary}"
    for provider in providers:
        summary = await provider.try_summarize(
            client, text, language=item.language, timeout=timeout
        )
        if summary:
            return item.model_copy(update={"summary": summary})
    return item


async def summarize_items(
    client: httpx.AsyncClient,
    items: Sequence[NewsItem],
    providers: Sequence[SummaryProvider],
    *,
    timeout: float = DEFAULT_SUMMARY_TIMEOUT,
    concurrency: int = DEFAULT_SUMMARY_CONCURRENCY,
) -> list[NewsItem]:
    """Replace each item's summary using the first provider that answers.

    With no providers this is the identity; items keep their original
    summary whenever every provider fails.
    """
    if not providers or not items:
        return list(items)

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _bounded(item: NewsItem) -> NewsItem:
        async with semaphore:
            return await summarize_item(client, item, providers, timeout=timeout)

    results = await asyncio.gather(
        *(_bounded(item) for item in items), return_exceptions=True
    )
    summarized: list[NewsItem] = []
    for original, result in zip(items, results, strict=True):
        if isinstance(result, NewsItem):
            summarized.append(result)
        else:
            logger.warning("Summarization failed for %s: %r", original.url, result)
            summarized.append(original)
    return summarized
