"""Centralised client settings loaded from environment / .env file."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Backend
    api_url: str = Field(
        "https://hande-api-nest.onrender.com/api", alias="NEXT_PUBLIC_API_URL"
    )
    request_timeout_seconds: float = 30.0

    # Third-party keys (passed through to the UI shell)
    google_maps_api_key: str = Field("", alias="NEXT_PUBLIC_GOOGLE_MAPS_API_KEY")
    google_client_id: str = Field("", alias="GOOGLE_CLIENT_ID")
    google_client_secret: str = Field("", alias="GOOGLE_CLIENT_SECRET")
    nextauth_secret: str = Field("", alias="NEXTAUTH_SECRET")

    # Auth token persistence
    token_path: Path = Path.home() / ".hande" / "token.json"
    token_ttl_days: int = 7

    # Polling loops
    bid_poll_interval_seconds: float = 5.0
    trip_poll_interval_seconds: float = 3.0
    nearby_poll_interval_seconds: float = 10.0
    nearby_radius_km: float = 10.0
    online_clock_interval_seconds: float = 1.0

    # Location watch
    location_high_accuracy: bool = True
    location_max_age_seconds: float = 5.0
    location_timeout_seconds: float = 10.0

    # Fallback fare (USD)
    fallback_base_fare: float = 2.5
    fallback_rate_per_km: float = 1.0
    fallback_rate_per_minute: float = 0.25
    fallback_minimum_fare: float = 5.0
    fallback_minutes_per_km: float = 3.0

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}


settings = Settings()
