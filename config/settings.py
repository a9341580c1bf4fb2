from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Core
    ENVIRONMENT: str = Field(default="production")
    FIRESTORE_PROJECT_ID: str = Field(default="")
    APP_BASE_URL: str = Field(default="http://localhost:3000")  # origin used in share links
    CORS_ALLOW_ORIGINS: str = Field(default="*")  # comma-separated

    # Firebase auth (ID token audience = Firebase project id)
    FIREBASE_PROJECT_ID: str = Field(default="")

    # Google Places
    GOOGLE_MAPS_API_KEY: str = Field(default="")
    PLACES_API_BASE_URL: str = Field(default="https://maps.googleapis.com/maps/api/place")
    PLACES_TIMEOUT_S: float = Field(default=10.0)
    PLACES_LANGUAGE: str = Field(default="zh-TW")
    MAIN_PHOTO_MAX_WIDTH: int = Field(default=400)
    MAIN_PHOTO_MAX_HEIGHT: int = Field(default=300)

    # Favorites
    MAX_FAVORITES_PER_STATION: int = Field(default=15)
    SUBSCRIBE_MAX_ATTEMPTS: int = Field(default=3)
    SUBSCRIBE_BACKOFF_BASE_S: float = Field(default=0.5)
    STREAM_KEEPALIVE_S: float = Field(default=15.0)

    # Sharing
    FULLMAP_READ_CONCURRENCY: int = Field(default=8)

    # Status text shown by the client, then auto-dismissed
    FEEDBACK_DISMISS_S: int = Field(default=3)


settings = Settings()
