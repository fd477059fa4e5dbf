from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Third-party place lookups
    mapbox_token: str = ""
    google_places_api_key: str = ""

    # Database
    database_url: str = "sqlite:///./trippee.db"

    # Links embedded in invitation emails
    app_url: str = "http://localhost:3000"
    invite_expiry_days: int = 7

    # Itinerary generation
    clustering_seed: Optional[int] = None
    max_trip_days: int = 14

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
