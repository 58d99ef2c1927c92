"""
Application configuration using Pydantic Settings.

Environment-based infrastructure switching is controlled by the ENVIRONMENT variable.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./projecthub.db"
    DATABASE_ECHO: bool = False

    # ===========================================
    # Auth
    # ===========================================
    # mock: bearer token is taken as the user id (development only)
    # local: HS256 JWT signed with LOCAL_JWT_SECRET, "sub" is the user id
    AUTH_PROVIDER: Literal["mock", "local"] = "mock"
    LOCAL_JWT_SECRET: str = ""
    LOCAL_JWT_ISSUER: str = "projecthub-local"
    LOCAL_JWT_EXPIRE_MINUTES: int = 60 * 24

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # ===========================================
    # Timeline
    # ===========================================
    UPCOMING_DEADLINE_DAYS: int = 14
    RECENT_COMPLETIONS_LIMIT: int = 3

    # ===========================================
    # Realtime
    # ===========================================
    REALTIME_KEEPALIVE_SECONDS: float = 15.0

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
