from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List, Optional

class Settings(BaseSettings):
    """
    Application settings. Values come from environment variables or a .env file.
    JWT_SECRET has no default: a missing secret fails at startup.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database and Redis settings
    DATABASE_URL: str = "sqlite:///./bizdesk.db"
    REDIS_URL: Optional[str] = None

    # JWT settings
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 1

    # First administrator, created on startup when both are set
    ADMIN_USERNAME: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None
    ADMIN_TELEGRAM: Optional[str] = None

    # API settings
    API_PREFIX: str = "/api"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Rate limiting (1000 requests per 15 minutes)
    RATE_LIMIT_REQUESTS: int = 1000
    RATE_LIMIT_WINDOW_SECONDS: int = 900

@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings loader so the environment is read once per process.
    """
    return Settings()
