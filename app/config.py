"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (Supabase Postgres in production, SQLite for local dev)
    DATABASE_URL: str

    # SofaScore (RapidAPI)
    RAPIDAPI_KEY: str = ""
    RAPIDAPI_HOST: str = "sofascore.p.rapidapi.com"
    SOFASCORE_TIMEOUT_SECONDS: float = 30.0
    SOFASCORE_MAX_PAGES: int = 20  # Per direction (last/next matches)

    # Supabase Auth (access tokens are HS256 JWTs signed with the project secret)
    SUPABASE_JWT_SECRET: str = ""
    SUPABASE_JWT_AUDIENCE: str = "authenticated"

    # Default tournament for the public standings tile (Brasileirão Série A)
    BRASILEIRAO_TOURNAMENT_ID: int = 325
    BRASILEIRAO_SEASON_ID: int = 87678

    # Import / scoring
    MATCH_UPSERT_BATCH_SIZE: int = 100  # Keeps each upsert under the request size limit
    SEASONS_KEPT_ON_SETUP: int = 10
    UPCOMING_WINDOW_DAYS: int = 14

    # Caches (seconds)
    STANDINGS_CACHE_SECONDS: int = 300
    LOGO_CACHE_SECONDS: int = 86400

    # Team crests
    LOGO_DIR: str = "public/images/logo"

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: str = "60/minute"

    # Telemetry / Observability
    METRICS_BEARER_TOKEN: str = ""  # Bearer token for /metrics (empty = no auth)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
