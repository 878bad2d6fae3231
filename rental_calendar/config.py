"""
Application settings, read from the environment (and .env in development).
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEV_SECRET_KEY = "dev-secret-key-at-least-32-characters-long-for-development"
DEV_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"


class Settings(BaseSettings):
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # SQLite locally, PostgreSQL in production
    database_url: str = Field(default="sqlite:///./rental_calendar.db", alias="DATABASE_URL")

    # Shared with the token issuer; HS256 only
    secret_key: str = Field(default=DEV_SECRET_KEY, alias="SECRET_KEY")
    algorithm: str = "HS256"

    # Comma-separated frontend origins
    allowed_origins: str = Field(default=DEV_ORIGINS, alias="ALLOWED_ORIGINS")

    # "Today" for past-date checks is taken in this timezone
    calendar_timezone: str = Field(default="UTC", alias="CALENDAR_TIMEZONE")
    max_calendar_days: int = Field(default=366, alias="MAX_CALENDAR_DAYS")

    default_search_radius_km: float = Field(default=10.0, alias="DEFAULT_SEARCH_RADIUS_KM")
    min_search_radius_km: float = Field(default=0.1, alias="MIN_SEARCH_RADIUS_KM")
    max_search_radius_km: float = Field(default=100.0, alias="MAX_SEARCH_RADIUS_KM")
    nearby_default_limit: int = Field(default=20, alias="NEARBY_DEFAULT_LIMIT")
    nearby_max_limit: int = Field(default=50, alias="NEARBY_MAX_LIMIT")

    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    search_rate_limit: str = Field(default="60/minute", alias="SEARCH_RATE_LIMIT")
    redis_url: str = Field(default="", alias="REDIS_URL")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    @field_validator('secret_key')
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if len(v or "") < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator('database_url')
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        # SQLAlchemy only accepts the postgresql:// scheme
        if v.startswith("postgres://"):
            return "postgresql://" + v[len("postgres://"):]
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins(self) -> List[str]:
        """ALLOWED_ORIGINS as a de-duplicated list, trailing slashes removed."""
        origins = [o.strip().rstrip("/") for o in self.allowed_origins.split(",")]
        unique = list(dict.fromkeys(o for o in origins if o))
        return unique or ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
