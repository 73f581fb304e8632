from pydantic_settings import BaseSettings
from typing import List
from zoneinfo import ZoneInfo
import os

class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Vijaya Children's Clinic"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    TESTING: bool = os.getenv("TESTING", "0").lower() in ("1", "true", "t", "yes", "y")

    # Backend actor gateway
    BACKEND_URL: str = "http://localhost:4943"
    BACKEND_TIMEOUT: float = 10.0
    BACKEND_RETRIES: int = 2
    BACKEND_RETRY_DELAY: float = 1.0

    # Staff sessions
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_HOURS: int = 24
    SESSION_COOKIE_NAME: str = "vijaya_clinic_staff_auth"

    # Redis (appointment cache, rate limits, revoked sessions)
    REDIS_URL: str = "redis://localhost:6379"
    APPOINTMENTS_CACHE_TTL: int = 60

    # Rate limiting for login and booking
    RATE_LIMIT_MAX_REQUESTS: int = 10
    RATE_LIMIT_WINDOW: int = 3600

    # Clinic calendar
    CLINIC_TIMEZONE: str = "Asia/Kolkata"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080", "http://testserver"]

    @property
    def clinic_tz(self) -> ZoneInfo:
        """Timezone used for "today", week and month boundaries."""
        return ZoneInfo(self.CLINIC_TIMEZONE)

    class Config:
        env_file = ".env"
        case_sensitive = True

# Create settings instance
settings = Settings()
