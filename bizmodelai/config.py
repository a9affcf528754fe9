"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # Gemini API (report insights; empty key means static fallback text)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # Redis (empty URL disables the insight cache)
    REDIS_URL: str = "redis://redis:6379/0"

    # Email (Resend)
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "BizModelAI <team@bizmodelai.com>"

    # Application
    APP_NAME: str = "BizModelAI"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    FRONTEND_URL: str = "http://localhost:5173"

    # Auth
    SECRET_KEY: str = "dev-secret-key-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    COOKIE_SECURE: bool = False
    BCRYPT_ROUNDS: int = 12
    HASHED_API_KEY: str = ""  # sha256 hex of the admin / payment bridge key

    # Retention
    TEMPORARY_USER_RETENTION_DAYS: int = 90
    GUEST_ATTEMPT_RETENTION_HOURS: int = 24
    REAPER_BATCH_SIZE: int = 100

    # Pricing
    REPORT_UNLOCK_PRICE: float = 4.99
    ACCOUNT_UPGRADE_PRICE: float = 9.99
    PAYMENT_CURRENCY: str = "usd"

    # Caching
    INSIGHT_CACHE_TTL: int = 3600  # 1 hour

    # Email cooldowns (seconds)
    EMAIL_INITIAL_COOLDOWN: int = 60
    EMAIL_EXTENDED_COOLDOWN: int = 300
    EMAIL_INITIAL_LIMIT: int = 5

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Settings loaded from the environment, built once per process"""
    return Settings()
