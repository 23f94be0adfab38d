# salonbook/config.py
"""
Application settings and configuration
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Basic app settings
    APP_NAME: str = Field(default="Salonbook Scheduling")
    DEBUG: bool = Field(default=False)

    # Database settings
    DATABASE_URL: str = Field(default="sqlite:///./salonbook.db")

    # JWT Authentication settings
    JWT_SECRET_KEY: str = Field(default="change-this-jwt-secret-in-production")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # Scheduling settings
    DEFAULT_TIMEZONE: str = Field(default="America/Sao_Paulo")
    SLOT_GRANULARITY_MINUTES: int = Field(default=30)
    RESERVATION_MAX_RETRIES: int = Field(default=3)

    # Monitoring settings
    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
