"""
Environment configuration for the hostel fee ledger.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from pathlib import Path
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

import pytz
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hostel_ledger import __version__

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application configuration
    APP_NAME: str = Field(default="Hostel Fee Ledger", alias="PROJECT_NAME")
    APP_VERSION: str = __version__
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    TIMEZONE: str = "UTC"
    CORS_ORIGINS: List[str] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Database configuration - support both individual fields and DATABASE_URL
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "hostel_ledger"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_ECHO: bool = False
    DB_SLOW_QUERY_SECONDS: float = 0.5
    DB_CONNECT_ARGS: Dict[str, Any] = {}

    # Redis configuration
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_POOL_SIZE: int = 10

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    # Ledger rules
    DEFAULT_DUE_DATE_DAY: int = 15
    MONEY_EPSILON: float = 0.01

    # Cascade execution: "inline" runs after commit on the caller's thread,
    # "background" hands it to a worker pool with its own session
    CASCADE_MODE: str = "inline"
    CASCADE_MAX_WORKERS: int = 4
    CASCADE_RETRY_VIA_CELERY: bool = False

    # Per-student serialization: "memory" or "redis"
    LEDGER_LOCK_BACKEND: str = "memory"
    LEDGER_LOCK_TIMEOUT_SECONDS: float = 10.0
    LEDGER_LOCK_TTL_SECONDS: int = 60

    # Background tasks
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    FEE_GENERATION_CRON_MINUTE: str = "5"
    FEE_GENERATION_CRON_HOUR: str = "0"
    FEE_GENERATION_CRON_DAY_OF_MONTH: str = "1"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from comma separated string to list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator('TIMEZONE')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f'Invalid timezone: {v}')
        return v

    @field_validator('DEFAULT_DUE_DATE_DAY')
    @classmethod
    def validate_due_day(cls, v: int) -> int:
        if not 1 <= v <= 31:
            raise ValueError("DEFAULT_DUE_DATE_DAY must be between 1 and 31")
        return v

    @field_validator('CASCADE_MODE')
    @classmethod
    def validate_cascade_mode(cls, v: str) -> str:
        if v not in ("inline", "background"):
            raise ValueError("CASCADE_MODE must be 'inline' or 'background'")
        return v

    @field_validator('LEDGER_LOCK_BACKEND')
    @classmethod
    def validate_lock_backend(cls, v: str) -> str:
        if v not in ("memory", "redis"):
            raise ValueError("LEDGER_LOCK_BACKEND must be 'memory' or 'redis'")
        return v

    def get_database_url(self) -> str:
        """Construct database URL from components or use provided URL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    def get_redis_url(self) -> str:
        """Get Redis URL"""
        return self.REDIS_URL

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
