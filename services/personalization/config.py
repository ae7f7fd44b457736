"""
Application configuration via pydantic-settings.
All config read from environment variables with sensible defaults for local dev.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "aurora-personalization"
    app_version: str = "0.1.0"
    environment: str = Field(default="development", pattern=r"^(development|staging|production)$")
    debug: bool = False

    # Redis (rate limiting only; the engine holds no state)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "https://aurora.app"]
    )

    # Sentry
    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)

    # Rate Limiting
    rate_limit_anon_per_min: int = 30
    rate_limit_auth_per_min: int = 120
    rate_limit_rebuild_per_min: int = 10

    # Feed ranking
    # Freshness decay constant in hours: exp(-age/24). Placeholder, not fit to session data.
    freshness_decay_hours: float = Field(default=24.0, gt=0.0)
    max_feed_candidates: int = Field(default=500, ge=1)

    # Profile building
    # Placeholder peak hours until session timestamps are analysed.
    default_peak_hours: list[int] = Field(default=[9, 12, 18, 21])

    # Notifications
    notification_daily_cap: int = Field(default=10, ge=1)
    notification_min_interval_hours: float = Field(default=2.0, ge=0.0)
    quiet_hours_start: int = Field(default=23, ge=0, le=23)
    quiet_hours_end: int = Field(default=7, ge=0, le=23)

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
