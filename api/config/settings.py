"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "MEUMT Membership"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # development, staging, production

    # Database
    DATABASE_URL: str = "sqlite:///./membership.db"

    # Internal Token (HS256), issued by the account service
    SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720  # 12 hours
    ALGORITHM: str = "HS256"

    # Cookie settings
    COOKIE_NAME: str = "meumt_access_token"
    COOKIE_DOMAIN: Optional[str] = None  # None = use request domain
    COOKIE_SECURE: bool = True  # HTTPS required
    COOKIE_SAMESITE: str = "lax"

    # Roster (Google Sheets)
    ROSTER_ENABLED: bool = False
    GOOGLE_SHEETS_SPREADSHEET: str = ""  # Spreadsheet URL or ID
    GOOGLE_SHEETS_RANGE: str = "A:Z"
    GOOGLE_SERVICE_ACCOUNT_FILE: Optional[str] = None  # Path to service account JSON
    ROSTER_TIMEOUT_SECONDS: float = 10.0
    ROSTER_CACHE_TTL_SECONDS: int = 300

    # Identification policy (empty = any non-empty student number)
    STUDENT_NUMBER_PATTERN: str = ""

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
