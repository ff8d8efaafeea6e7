from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Settings(BaseSettings):
    # Database
    PGHOST: str = "localhost"
    PGPORT: int = 5432
    PGUSER: str = "tracker"
    PGPASSWORD: str
    PGDATABASE: str = "tracker"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:80"
    LOG_LEVEL: str = "INFO"
    AUTO_MIGRATE: bool = False  # apply schema.sql on startup

    # YouTube Data API v3
    YOUTUBE_API_KEY: str = ""
    YOUTUBE_API_URL: str = "https://www.googleapis.com/youtube/v3"
    YOUTUBE_PAGE_SIZE: int = 50     # playlistItems maxResults (API maximum is 50)
    YOUTUBE_BATCH_SIZE: int = 50    # ids per videos.list call (API maximum is 50)
    YOUTUBE_MAX_PAGES: int = 100
    YOUTUBE_TIMEOUT: float = 15.0
    YOUTUBE_MAX_RETRIES: int = 3

    # Learning activity
    ACTIVITY_TIMEZONE: str = "UTC"  # calendar-day boundary for ledger and streaks
    ACTIVITY_RETENTION_DAYS: int = 365
    CALENDAR_WINDOW_DAYS: int = 364

    # Firebase Admin SDK
    FIREBASE_SERVICE_ACCOUNT_PATH: str = "/opt/tracker/secrets/firebase-service-account.json"

    # Session cookies
    SESSION_COOKIE_NAME: str = "tracker_session"
    SESSION_COOKIE_SECURE: bool = True
    SESSION_COOKIE_HTTPONLY: bool = True
    SESSION_COOKIE_SAMESITE: str = "lax"
    SESSION_COOKIE_MAX_AGE: int = 86400     # 1 day in seconds

    @field_validator("ACTIVITY_TIMEZONE")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            raise ValueError(f"Unknown time zone: {v!r}")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def database_url(self) -> str:
        return f"postgresql://{self.PGUSER}:{self.PGPASSWORD}@{self.PGHOST}:{self.PGPORT}/{self.PGDATABASE}"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


settings = Settings()
