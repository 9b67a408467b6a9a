"""Application configuration loaded from environment variables and .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_DATA_DIR = Path(__file__).resolve().parent / "data"


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./stacksquest.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Quest progression
    QUEST_COMPLETION_XP: int = 100

    # Catalog seeding
    SEED_DATA_PATH: str = str(_DATA_DIR / "seed_catalog.json")
    SEED_ON_STARTUP: bool = True

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]


settings = Settings()
