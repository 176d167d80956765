"""Configuration settings using pydantic-settings."""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

SAMPLE_QUIZ_PATH = str(Path(__file__).parent / "data" / "sample_quiz.json")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Telegram Bot
    BOT_TOKEN: str = Field(
        default="",
        description="Telegram Bot API token (checked at start-up)"
    )

    # Quiz
    QUIZ_PATH: str = Field(
        default=SAMPLE_QUIZ_PATH,
        description="Path to the JSON quiz definition"
    )
    TICK_INTERVAL_SECONDS: float = Field(
        default=1.0,
        description="Wall-clock seconds between countdown ticks"
    )
    TIME_WARNING_SECONDS: int = Field(
        default=60,
        description="Warn the user when this many seconds remain (0 disables)"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    LOG_FILE: str = Field(
        default="",
        description="Path to log file (empty to log to stdout only)"
    )

    class Config:
        """Pydantic config."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
