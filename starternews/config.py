import logging
from functools import lru_cache

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="", extra="ignore", populate_by_name=True
    )

    http_timeout: float = Field(10.0, gt=0, alias="HTTP_TIMEOUT")
    http_max_connections: int = Field(20, ge=1, alias="HTTP_MAX_CONNECTIONS")
    http_max_keepalive: int = Field(10, ge=1, alias="HTTP_MAX_KEEPALIVE")
    http_user_agent: str = Field(
        "StarterNews/0.1 (+https://example.com; news aggregator)",
        alias="HTTP_USER_AGENT",
    )
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    source_timeout: float = Field(8.0, gt=0, alias="SOURCE_TIMEOUT")
    max_sources: int = Field(8, ge=1, alias="MAX_SOURCES")
    default_limit: int = Field(12, ge=1, alias="DEFAULT_LIMIT")
    min_limit: int = Field(3, ge=1, alias="MIN_LIMIT")
    max_limit: int = Field(50, ge=1, alias="MAX_LIMIT")
    title_fingerprint_length: int = Field(60, ge=10, alias="TITLE_FINGERPRINT_LENGTH")
    default_category: str = Field("world", alias="DEFAULT_CATEGORY")
    default_country: str = Field("bd", alias="DEFAULT_COUNTRY")
    default_language: str = Field("en", alias="DEFAULT_LANGUAGE")

    gnews_api_key: str | None = Field(default=None, alias="GNEWS_API_KEY")
    gnews_base_url: HttpUrl = Field("https://gnews.io/api/v4", alias="GNEWS_BASE_URL")
    news_api_key: str | None = Field(default=None, alias="NEWS_API_KEY")
    news_api_base_url: HttpUrl = Field(
        "https://newsapi.org/v2", alias="NEWS_API_BASE_URL"
    )
    newsdata_api_key: str | None = Field(default=None, alias="NEWSDATA_API_KEY")
    newsdata_base_url: HttpUrl = Field(
        "https://newsdata.io/api/1", alias="NEWSDATA_BASE_URL"
    )

    summarize_enabled: bool = Field(True, alias="SUMMARIZE_ENABLED")
    summarize_timeout: float = Field(3.0, gt=0, alias="SUMMARIZE_TIMEOUT")
    summarize_concurrency: int = Field(4, ge=1, alias="SUMMARIZE_CONCURRENCY")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: HttpUrl = Field(
        "https://api.openai.com/v1", alias="OPENAI_BASE_URL"
    )
    openai_model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL")
    groq_api_key: str | None = Field(default=None, alias="GROQ_API_KEY")
    groq_base_url: HttpUrl = Field(
        "https://api.groq.com/openai/v1", alias="GROQ_BASE_URL"
    )
    groq_model: str = Field("llama-3.1-8b-instant", alias="GROQ_MODEL")
    huggingface_api_key: str | None = Field(default=None, alias="HUGGINGFACE_API_KEY")
    huggingface_base_url: HttpUrl = Field(
        "https://api-inference.huggingface.co/models", alias="HUGGINGFACE_BASE_URL"
    )
    huggingface_model: str = Field(
        "facebook/bart-large-cnn", alias="HUGGINGFACE_MODEL"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def url_root(value: HttpUrl) -> str:
    return str(value).rstrip("/")


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
