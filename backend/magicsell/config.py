from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "MagicSell Backend API"
    debug: bool = False
    environment: str = "development"  # development, production
    log_level: str = "INFO"

    # Storage (SQL when configured and reachable, JSON file otherwise)
    database_url: Optional[str] = None
    data_dir: str = "."
    backup_retention: int = 5
    strict_persistence: bool = False  # True: a failed save fails the request

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://localhost:3002",
    ]

    # Geocoding
    mapbox_token: Optional[str] = None
    mapbox_geocoding_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"
    geocoding_country: str = "GB"
    geocoding_timeout_seconds: float = 10.0

    # Depot (Poole)
    depot_postcode: str = "BH13 7EX"
    depot_lat: float = 50.7128
    depot_lng: float = -1.9876

    # Placeholder forecast
    fallback_prediction: float = 850.00
    prediction_confidence: int = 85
    prediction_growth_factor: float = 1.1

    @property
    def data_file(self) -> Path:
        name = "data_production.json" if self.environment == "production" else "data.json"
        return Path(self.data_dir) / name

    class Config:
        env_file = ".env"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
