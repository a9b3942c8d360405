"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "aqi-watch"
    debug: bool = False
    log_level: str = "INFO"

    # Upstream collaborators
    waqi_token: str = "demo"
    waqi_base_url: str = "https://api.waqi.info"
    ip_geolocation_url: str = "https://ipapi.co/json/"
    google_maps_api_key: str = ""
    geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    http_timeout_seconds: float = 10.0

    # Location resolution
    default_lat: float = 28.6139
    default_lng: float = 77.209
    motion_threshold_degrees: float = 0.0005
    geocode_reuse_threshold_degrees: float = 0.001
    ip_fallback_delay_seconds: float = 6.0

    # Alerting
    alert_threshold: int = 150
    alert_cooldown_minutes: float = 5.0
    alert_bucket_width: float = 5.0
    alert_log_size: int = 5

    # History + auto refresh
    history_size: int = 6
    auto_refresh_minutes: int = 10

    # City ranking
    ranking_cities: list[str] = [
        "Delhi",
        "Mumbai",
        "Bengaluru",
        "Chennai",
        "Kolkata",
        "Hyderabad",
    ]

    # Persistence (disabled when unset)
    persistence_path: str | None = None

    model_config = {"env_prefix": "AQIWATCH_"}


settings = Settings()
