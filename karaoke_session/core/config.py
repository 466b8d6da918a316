"""Configuration management for Karaoke Session."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Google Cloud
    google_cloud_project: str = ""
    firestore_database: str = "(default)"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # JWT (tokens are issued by the upstream identity provider)
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"

    # Frontend
    frontend_url: str = "http://localhost:3000"

    # Emulators (auto-detected)
    firestore_emulator_host: str | None = None

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_emulated(self) -> bool:
        """Check if using the Firestore emulator."""
        return self.firestore_emulator_host is not None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
