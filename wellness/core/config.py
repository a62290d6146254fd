"""
Application configuration management using Pydantic Settings
Handles all environment variables and application settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List
from functools import lru_cache


class Settings(BaseSettings):
    """Main application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application Settings
    APP_NAME: str = "Wellness Center API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./wellness.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_ECHO: bool = False
    SQLITE_BUSY_TIMEOUT: float = 30.0  # seconds a writer waits for the lock

    # Redis Configuration
    REDIS_URL: str = "redis://localhost:6379"
    REDIS_DECODE_RESPONSES: bool = True
    REDIS_MAX_CONNECTIONS: int = 50
    CACHE_USE_REDIS: bool = True

    # Security Settings
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    AUTH_COOKIE_NAME: str = "auth_token"

    # CORS Configuration
    FRONTEND_URL: str = "http://localhost:3000"
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1"]
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # File Upload Settings
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_IMAGE_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".webp", ".gif"]
    UPLOAD_DIR: str = "uploads"

    # Email Configuration
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@wellness.local"
    SMTP_FROM_NAME: str = "Wellness Center"
    SMTP_USE_TLS: bool = True
    EMAIL_ENABLED: bool = True

    # Celery Configuration
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TIMEZONE: str = "Europe/Moscow"
    APPOINTMENT_STATUS_SWEEP_SECONDS: int = 15 * 60

    # Booking
    REQUIRE_CONFIRMATION: bool = False
    ENFORCE_SLOT_AVAILABILITY: bool = False
    CRON_API_KEY: Optional[str] = None

    # Bonus program defaults
    BOOKING_BONUS_AMOUNT: float = 300
    REFERRER_BONUS_AMOUNT: float = 2000
    REFERRAL_BONUS_AMOUNT: float = 2000
    BONUS_CACHE_TTL_SECONDS: int = 5 * 60
    REFERRAL_CODE_MAX_ATTEMPTS: int = 10

    # Errors
    INTERNAL_ERROR_MESSAGE: str = "Внутренняя ошибка сервера"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URL: str = "memory://"
    RATE_LIMIT_DEFAULT: str = "1000/hour"
    RATE_LIMIT_BOOKING: str = "20/minute"

    @property
    def database_url_async(self) -> str:
        """Convert sync database URL to async"""
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")
        elif self.DATABASE_URL.startswith("sqlite://"):
            return self.DATABASE_URL.replace("sqlite://", "sqlite+aiosqlite://")
        return self.DATABASE_URL


@lru_cache()
def get_settings() -> Settings:
    """
    Create cached settings instance
    This ensures settings are loaded only once
    """
    return Settings()


# Global settings instance
settings = get_settings()
