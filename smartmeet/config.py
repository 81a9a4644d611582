"""Central configuration management."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = Field(default="sqlite:///smartmeet.db", description="SQLite database URL")
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    sqlite_busy_timeout_ms: int = Field(default=5000, description="How long a writer waits on a locked file")

    # Retention and listing
    cleanup_days_to_keep: int = Field(default=90, description="Completed sessions older than this are removed")
    stats_window_days: int = Field(default=30, description="Trailing window for daily activity")

    # Application
    app_name: str = Field(default="SmartMeet")
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="SMARTMEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """The store runs on an embedded SQLite file."""
        if not v.startswith("sqlite"):
            raise ValueError("Database URL must use the sqlite dialect")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# Global settings instance
settings = Settings()
