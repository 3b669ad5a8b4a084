"""
backend/matchdesk/config.py

Purpose:
    Central settings loading for the match desk backend: store connection,
    Flashscore feed access, cache lifetimes and sync scheduling.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "matchdesk"
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Flashscore (RapidAPI) feed
    FEED_BASE_URL: str = "https://flashscore4.p.rapidapi.com/api/flashscore/v2"
    FEED_API_HOST: str = "flashscore4.p.rapidapi.com"
    FEED_API_KEY: str = ""
    FEED_SPORT_ID: int = 1
    FEED_RELATIVE_WINDOW_DAYS: int = 7  # relative `day=` endpoint is only authoritative inside this window
    FEED_TIMEOUT_SECONDS: float = 15.0
    FEED_MAX_RETRIES: int = 1
    FEED_BASE_DELAY_SECONDS: float = 1.0

    # Response cache
    FEED_LIVE_CACHE_TTL_SECONDS: float = 3.0
    FEED_DATE_CACHE_TTL_SECONDS: float = 30.0
    RESPONSE_CACHE_RETENTION_SECONDS: float = 60.0

    # Calendar days, "HH:MM" kickoff rendering and dedup keys use this zone
    LOCAL_TIMEZONE: str = "UTC"

    # Periodic sync of today's fixtures (polling, no push)
    SYNC_SCHEDULER_ENABLED: bool = False
    SYNC_INTERVAL_MINUTES: int = 10

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
