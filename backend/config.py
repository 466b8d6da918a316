"""Backend-specific configuration."""

from functools import lru_cache

from pydantic import Field

from karaoke_session.core.config import Settings


class BackendSettings(Settings):
    """Extended settings for the backend API."""

    # CORS
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
    )

    # Group recommendations
    recommendation_limit: int = Field(10, ge=1, le=10)
    default_difficulty: float = Field(5.0, ge=0.0, le=10.0)

    # Listing
    max_active_sessions_listed: int = 50


@lru_cache
def get_backend_settings() -> BackendSettings:
    """Get cached backend settings instance."""
    return BackendSettings()
