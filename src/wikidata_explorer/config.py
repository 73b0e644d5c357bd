"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for Wikidata and Gemini connectivity."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    GEMINI_API_KEY: str | None = None
    GEMINI_API_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_FAST_MODEL: str = "gemini-3-flash-preview"
    GEMINI_PRO_MODEL: str = "gemini-3-pro-preview"

    WIKIDATA_API_URL: str = "https://www.wikidata.org/w/api.php"
    WIKIDATA_LANGUAGE: str = "en"
    SEARCH_LIMIT: int = 15
    IMAGE_WIDTH: int = 400
    IMAGE_LOOKUP_WORKERS: int = 8

    HTTP_TIMEOUT_SECONDS: float = 30.0
    USER_AGENT: str = "wikidata-explorer/0.1 (https://github.com/wikidata-explorer)"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
