"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream creature API (PokeAPI, public, no auth)
    POKEAPI_BASE_URL: str = "https://pokeapi.co/api/v2"
    HTTP_TIMEOUT_SECONDS: float = 10.0
    PLACEHOLDER_SPRITE: str = "/pokeball-placeholder.png"

    # Cache Store
    CACHE_TTL_SECONDS: float = 300.0  # 5 minutes, fixed by contract
    CACHE_MAX_ENTRIES: int = 4096     # LRU bound (one entry per URL or query)

    # Fan-out: max simultaneous detail requests per query
    FANOUT_CONCURRENCY: int = 16

    # Search working set: first N list refs scanned for substring matches
    SEARCH_WORKING_SET_MAX: int = 1000
    SEARCH_WORKING_SET_FACTOR: int = 10

    # Combined search + type: candidate pool hydrated from the type
    COMBINED_POOL_LIMIT: int = 1000

    # Public API
    RATE_LIMIT_PER_MINUTE: str = "120/minute"
    LOG_LEVEL: str = "INFO"

    # Sentry (optional, disabled when DSN empty)
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.05

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
