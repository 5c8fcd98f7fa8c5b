"""
Application configuration settings.
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings


DEV_SESSION_SECRET = "securevote-dev-secret-change-in-production"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    APP_NAME: str = "SecureVote Dashboard"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    WORKERS: int = 1

    # Storage
    STORAGE_BACKEND: str = "sql"
    DATABASE_URL: str = "sqlite+aiosqlite:///./securevote.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_ECHO: bool = False

    # Sessions
    SESSION_SECRET: str = DEV_SESSION_SECRET
    SESSION_COOKIE_NAME: str = "securevote.sid"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 8
    SESSION_ALGORITHM: str = "HS256"
    SESSION_SECRET_MIN_LENGTH: int = 32

    # Devices
    DEVICE_API_KEY: Optional[str] = None
    CONFIDENCE_THRESHOLD: float = 50.0
    LOW_BATTERY_THRESHOLD: int = 15

    # Seeding
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: Optional[str] = None
    DEFAULT_ADMIN_FULL_NAME: str = "System Administrator"
    SEED_SAMPLE_DATA: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:5000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @model_validator(mode="after")
    def check_production_secrets(self) -> "Settings":
        """Refuse weak session secrets and unknown backends."""
        if self.STORAGE_BACKEND not in ("sql", "memory"):
            raise ValueError(f"Unsupported STORAGE_BACKEND: {self.STORAGE_BACKEND}")
        if self.is_production:
            if self.SESSION_SECRET == DEV_SESSION_SECRET:
                raise ValueError("SESSION_SECRET must be set in production")
            if len(self.SESSION_SECRET) < self.SESSION_SECRET_MIN_LENGTH:
                raise ValueError(
                    f"SESSION_SECRET must be at least {self.SESSION_SECRET_MIN_LENGTH} characters"
                )
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
