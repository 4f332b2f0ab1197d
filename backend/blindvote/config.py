"""
Blindvote Configuration
Handles environment variables and application settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional
import logging
import sys


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application Settings
    APP_NAME: str = "Blindvote"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./blindvote.db"
    DATABASE_ECHO: bool = False

    # Blind signature parameters (RSABSSA-SHA384-PSS)
    BLIND_SIGNATURE_HASH: str = "sha384"
    BLIND_SIGNATURE_SALT_LENGTH: int = 48
    MESSAGE_RANDOMIZER_LENGTH: int = 32
    MAX_SIGNATURE_LENGTH: int = 512

    # Election parameters
    MIN_CANDIDATES: int = 2
    MAX_CANDIDATE_NAME_LENGTH: int = 128
    CANDIDATE_PLACEHOLDER_NAME: str = "candidate"

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging from settings"""
    settings = settings or get_settings()
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper(),
        format=settings.LOG_FORMAT,
        handlers=handlers,
    )


# Global settings instance
settings = get_settings()
