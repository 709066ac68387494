"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Scheduling
    timezone: str = "Europe/Madrid"
    min_advance_minutes: int = 120  # earliest pickup = now + 2 h
    max_advance_days: int = 365

    # Service rules
    min_hourly_hours: int = 2
    default_hourly_hours: int = 2
    max_child_seats: int = 3

    # Pricing
    child_seat_fee: float = 5.0  # EUR per seat
    airport_fee: float = 5.0  # EUR
    tax_rate: float = 0.21  # 21 % VAT
    currency: str = "EUR"

    # Place search
    search_debounce_seconds: float = 0.3
    search_min_chars: int = 2
    search_country: str = "es"
    pickup_bias_south: float = 41.270
    pickup_bias_west: float = 1.930
    pickup_bias_north: float = 41.520
    pickup_bias_east: float = 2.320
    dropoff_bias_radius_km: float = 30.0

    # Geolocation
    geolocation_timeout_seconds: float = 15.0

    # Maps provider
    maps_api_key: str = ""
    maps_base_url: str = "https://maps.googleapis.com/maps/api"
    maps_timeout_seconds: float = 10.0

    # Redis (draft handoff mailbox)
    redis_url: str = "redis://localhost:6379/0"
    handoff_key_prefix: str = "booking-draft"
    handoff_ttl_seconds: int = 1800

    # API
    rate_limit: str = "100/minute"
    session_idle_ttl_seconds: int = 1800

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
