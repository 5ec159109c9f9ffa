"""Configuration management for Expensiver."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSIVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Local user defaults
    user_name: str = "Your Name"
    default_currency: str = "₹"  # Used for new groups unless one is given

    # Logging
    log_level: str = "INFO"

    # Database path
    database_path: Path = Path.home() / ".expensiver" / "expensiver.db"

    def __init__(self, **kwargs):
        """Initialize settings and create the database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the EXPENSIVER_* variables in your "
            f"environment or .env file.\n"
            f"Error: {e}"
        ) from e
