"""Configuration management for planner."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Local state store
    sqlite_db_path: str = Field(default="./data/planner.db", description="SQLite file backing the key/value store")

    # OpenRouter Configuration
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key for LLM access")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Assistant identity used in collaborator prompts
    bot_name: str = Field(default="Planner", description="Assistant name used in prompts")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value

    # AI Model Configuration
    model_id: str = Field(
        default="google/gemini-2.5-flash",
        description="Model ID for OpenRouter",
    )
    model_provider: str | None = Field(
        default=None,
        description="Optional OpenRouter provider to pin requests to",
    )
    collaborator_max_attempts: int = Field(
        default=2, description="Maximum attempts for a single collaborator call before falling back"
    )
    collaborator_timeout_seconds: float = Field(
        default=30.0, description="Per-attempt timeout for a collaborator call"
    )


# Application Constants
class Constants:
    """Application-wide constants."""

    # Title quality gate
    TITLE_MIN_LENGTH: int = 2
    TITLE_MAX_LENGTH: int = 100
    SINGLE_WORD_MIN_LENGTH: int = 4
    SINGLE_WORD_MAX_LENGTH: int = 15
    MIN_VOWEL_CONSONANT_RATIO: float = 0.2
    DESCRIPTION_MAX_LENGTH: int = 500

    # Persisted state
    TASKS_STORAGE_KEY: str = "planner-tasks"
    ACHIEVEMENTS_STORAGE_KEY: str = "planner-achievements"
    STATE_FORMAT_VERSION: int = 1
    UNREADABLE_STATE_SUFFIX: str = ".unreadable"

    # Fallback schedule (positional slot table)
    SCHEDULE_START_TIMES: tuple[str, ...] = ("9:00 AM", "11:00 AM", "1:00 PM", "2:30 PM", "4:00 PM", "4:45 PM")
    SCHEDULE_DURATIONS_HOURS: tuple[float, ...] = (2, 1.5, 1, 1.5, 1, 0.75)
    SCHEDULE_MAX_HOURS: float = 8.0

    # Task breakdown
    BREAKDOWN_MAX_SUBTASKS: int = 5

    # Achievements
    EARLY_BIRD_HOUR: int = 8
    FOCUS_MASTER_MINUTES: int = 600

    # Suggestions
    SUGGESTION_RECENT_WINDOW: int = 10
    DEFAULT_AVERAGE_COMPLETION_DAYS: float = 3.0


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
