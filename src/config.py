"""Application configuration loaded from environment variables and .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./dev.db"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Content catalog (quests / characters / level rewards / skill tree)
    CONTENT_PATH: str = "src/data/quest_catalog.json"

    # Randomness oracle settings
    ORACLE_PROVIDER: str = "mock"
    ORACLE_SEED: Optional[str] = None
    ORACLE_MAX_WORDS: int = 10


settings = Settings()
