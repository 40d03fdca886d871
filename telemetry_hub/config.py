"""
Telemetry Hub - Configuration Management

Loads configuration from environment variables with sensible defaults.
"""

from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


LOG_LEVELS = ("trace", "debug", "info", "warn", "warning", "error")
MAX_UPLOAD_INTERVAL = 365 * 24 * 3600


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Telemetry Hub"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "info"

    # Database (MySQL/MariaDB unless DATABASE_URL points elsewhere)
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_NAME: str = "telemetry_hub"
    DB_USER: str = "telemetry"
    DB_PASSWORD: str = "telemetry"

    # API keys, one per caller role
    PROBE_API_KEY: str = "change-me-probe"
    LOG_COLLECTOR_API_KEY: str = "change-me-collector"
    CLI_API_KEY: str = "change-me-cli"

    # Retention
    CLEANUP_INTERVAL_MINUTES: int = 5
    DELETE_TIMEOUT_MINUTES: int = 30
    PURGE_BATCH_SIZE: int = 10000
    PURGE_MAX_BATCHES: int = 1
    SWEEP_ON_DOWNLOAD: bool = True

    # Upload schedule
    DEFAULT_UPLOAD_INTERVAL: int = 300
    SAFETY_SLACK_FACTOR: float = 1.1

    # Download
    MAX_LOG_ITEMS_PER_DOWNLOAD: int = 10000

    # Commands accepted on /command
    ALLOWED_COMMANDS: List[str] = ["set_update_interval", "set_log_level"]

    # Security
    ALLOWED_HOSTS: List[str] = ["*"]
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = True

    @field_validator(
        "CLEANUP_INTERVAL_MINUTES",
        "DELETE_TIMEOUT_MINUTES",
        "PURGE_BATCH_SIZE",
        "PURGE_MAX_BATCHES",
        "DEFAULT_UPLOAD_INTERVAL",
        "MAX_LOG_ITEMS_PER_DOWNLOAD",
    )
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("DEFAULT_UPLOAD_INTERVAL")
    @classmethod
    def _interval_within_a_year(cls, value: int) -> int:
        if value > MAX_UPLOAD_INTERVAL:
            raise ValueError(f"must be at most {MAX_UPLOAD_INTERVAL} seconds")
        return value

    @field_validator("SAFETY_SLACK_FACTOR")
    @classmethod
    def _slack_at_least_one(cls, value: float) -> float:
        if value < 1.0:
            raise ValueError("must be at least 1.0")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.lower()
        return value if value in LOG_LEVELS else "info"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?charset=utf8mb4"
        )


settings = Settings()
