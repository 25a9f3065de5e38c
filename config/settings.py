"""
Configuration settings for the InternOS API.
All sensitive values are loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "InternOS API"
    debug: bool = Field(default=False, env="DEBUG")
    environment: str = Field(default="production", env="ENVIRONMENT")

    # Server
    host: str = Field(default="0.0.0.0", env="HOST")
    port: int = Field(default=8000, env="PORT")
    cors_origins: List[str] = Field(default=["http://localhost:5173"], env="CORS_ORIGINS")

    # Database (PostgreSQL in production, SQLite for local runs and tests)
    database_url: str = Field(default="", env="DATABASE_URL")
    database_echo: bool = Field(default=False, env="DATABASE_ECHO")
    db_pool_size: int = Field(default=10, env="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, env="DB_MAX_OVERFLOW")
    db_pool_timeout: int = Field(default=30, env="DB_POOL_TIMEOUT")
    db_pool_recycle: int = Field(default=3600, env="DB_POOL_RECYCLE")

    # Token signing
    jwt_key: str = Field(default="", env="JWT_KEY")
    jwt_issuer: str = Field(default="InternOS", env="JWT_ISSUER")
    jwt_audience: str = Field(default="InternOSUsers", env="JWT_AUDIENCE")
    jwt_algorithm: str = Field(default="HS256", env="JWT_ALGORITHM")
    token_lifetime_hours: int = Field(default=24, env="TOKEN_LIFETIME_HOURS")

    # Uploads
    uploads_dir: str = Field(default="Uploads", env="UPLOADS_DIR")
    max_submission_bytes: int = 10 * 1024 * 1024
    max_profile_photo_bytes: int = 5 * 1024 * 1024

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, env="RATE_LIMIT_ENABLED")
    auth_rate_limit: str = Field(default="10/minute", env="AUTH_RATE_LIMIT")
    redis_url: str = Field(default="", env="REDIS_URL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the application settings."""
    return settings
