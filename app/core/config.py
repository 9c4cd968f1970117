"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for import throughout the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str
    STUDENTS_TABLE: str = "students"
    PROFILE_PICTURES_BUCKET: str = "profile_pictures"

    # Membership code
    UNIQUE_CODE_PREFIX: str = "STU-"
    UNIQUE_CODE_LENGTH: int = 6

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Sessions
    SESSION_IDLE_TIMEOUT_MINUTES: int = 60
    SESSION_SWEEP_INTERVAL_MINUTES: int = 5

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()  # type: ignore[call-arg]
