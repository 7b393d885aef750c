# @TASK P0-T0.3 - pydantic-settings based application settings

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Blog search application settings.

    All values are loaded from environment variables.
    A .env file in the backend directory is also supported.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Database ---
    DATABASE_URL: str = "postgresql+asyncpg://blog:blog@db:5432/blog"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- HTTP ---
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # --- Search ---
    # Text search configuration for websearch_to_tsquery and the search_vector
    # trigger (applied when the migration runs); the two must stay in step.
    SEARCH_TS_CONFIG: str = "simple"
    SEARCH_SUFFICIENCY_CAP: int = 5  # fuzzy runs when lexical hits < min(limit, cap)
    SEARCH_TRIGRAM_THRESHOLD: float | None = None  # None = pg_trgm.similarity_threshold via %
    SEARCH_HIGHLIGHT_TAG: str = "mark"
    SEARCH_SUGGESTION_MIN_PREFIX: int = 2

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver."""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton."""
    return Settings()
