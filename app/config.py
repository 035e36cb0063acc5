from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Union

from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite://./dev.db"
    # Security
    JWT_SECRET: str = "dev-jwt-secret-change-me-very-long-32-chars-minimum"
    ACCESS_TOKEN_EXPIRES_MIN: int = 1440
    # App
    APP_ENV: str = "development"
    CORS_ORIGINS: Union[str, List[str]] = "http://localhost:3000,http://127.0.0.1:3000"
    SENTRY_DSN: str = ""

    # Storage
    STORAGE_DRIVER: str = "local"
    STORAGE_DIR: str = "./storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000/media"
    S3_BUCKET: str = ""
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str = ""

    # Cache
    CACHE_DRIVER: str = "redis"
    REDIS_URL: str = "redis://127.0.0.1:6379/0"

    # Images
    MAX_IMAGE_BYTES: int = 8 * 1024 * 1024
    FEED_PAGE_SIZE: int = 30
    FEED_CACHE_TTL_MS: int = 3_600_000

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
