from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    # Wall clock used for rental dates/times and check-in windows
    TIMEZONE: str = "Europe/Lisbon"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    DB_ECHO: bool = False

    # Redis (arq worker)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Supabase auth
    # Placeholder values keep local/test runs working without credentials.
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Microservices URLs
    RENTALS_SERVICE_URL: str = "http://rentals-service:8010"
    CHECKIN_SERVICE_URL: str = "http://checkin-service:8011"
    COMMUNICATIONS_SERVICE_URL: str = "http://communications-service:8004"

    # Rental cancellation policy
    COACH_CANCELLATION_NOTICE_HOURS: int = 24
    STAFF_CANCELLATION_NOTICE_HOURS: int = 48
    CANCELLATION_CREDIT_UNITS: int = 1
    CANCELLATION_CREDIT_EXPIRY_DAYS: int = 90

    # Notifications
    NOTIFICATIONS_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
