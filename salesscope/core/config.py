"""
Application configuration for SalesScope.

Settings are read from environment variables (or a local .env file) and
validated once at startup.
"""

from functools import lru_cache
from typing import List, Optional, Union

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-secret-change-in-production"


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Every field can be overridden by the upper-cased environment variable
    of the same name (e.g. DATABASE_URL, REDIS_URL).
    """

    # Environment Settings
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Database Configuration
    database_url: str = "sqlite+aiosqlite:///./salesscope.db"
    db_echo: bool = False
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Redis Configuration (memory cache is used when unset)
    redis_url: Optional[str] = None
    cache_key_prefix: str = "salesscope"
    analytics_cache_ttl_seconds: int = 300
    memory_cache_max_entries: int = 1000
    redis_circuit_failure_threshold: int = 5
    redis_circuit_recovery_seconds: int = 60

    # JWT Authentication - MUST be overridden in production
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 15

    # API
    # Accepts a JSON list or a comma separated string
    cors_origins: Union[List[str], str] = ["http://localhost:3000"]

    # File Upload Configuration
    max_upload_size_mb: int = 50

    # Ingestion
    ingestion_batch_size: int = 1000
    inference_sample_size: int = 100

    # Analytics: push grouped sums down to SQL, or group fetched rows in-process
    analytics_store_aggregation: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @model_validator(mode="after")
    def validate_jwt_secret(self):
        """Ensure JWT secret is not using default in production."""
        if self.is_production and self.jwt_secret_key == DEFAULT_JWT_SECRET:
            raise ValueError(
                "JWT_SECRET_KEY must be set to a secure value in production"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def redis_enabled(self) -> bool:
        return self.redis_url is not None

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance with environment variables loaded
    """
    return Settings()
