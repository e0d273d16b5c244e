"""Configuration management for Task.level."""

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

    # Database Configuration
    sqlite_db_path: str = Field(default="data/tasklevel.db", description="SQLite database file path")

    # Push fan-out function
    push_function_url: str | None = Field(
        default=None, description="URL of the remote function that fans out Web Push notifications"
    )
    push_function_key: str | None = Field(default=None, description="Bearer key for the push fan-out function")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # List lifecycle
    local_utc_offset_hours: int = Field(
        default=2, description="Offset of the product's local clock from UTC, used for midnight anchors"
    )
    list_reminder_delay_minutes: int = Field(
        default=5, description="Delay before the check-in notification sent after a list is created"
    )

    # Expiring list reminders
    enable_expiring_reminders: bool = Field(default=True, description="Enable the hourly expiring-list reminder job")
    expiring_reminder_hours: int = Field(
        default=3, description="Lists expiring within this many hours get a reminder"
    )

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


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_BAD_REQUEST: int = 400
    HTTP_FORBIDDEN: int = 403
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_SERVER_ERROR: int = 500

    # List lifecycle
    MIN_VALIDITY_HOURS: int = 3  # A new list must stay open at least this long
    BASE_POINTS: dict[str, int] = {"daily": 10, "weekly": 30, "monthly": 100}
    LIST_LIMITS: dict[str, int] = {"daily": 2, "weekly": 1, "monthly": 1}  # Per local day
    MIN_TASKS: dict[str, int] = {"daily": 4, "weekly": 7, "monthly": 10}
    DEFAULT_MIN_TASKS: int = 1

    # Stats
    STAT_UPGRADE_COST_STEP: int = 2  # Level n+1 costs (n + 1) * step points

    # Leaderboard
    LEADERBOARD_DEFAULT_LIMIT: int = 50

    # Notification assets
    NOTIFICATION_ICON: str = "/icon-192.png"
    NOTIFICATION_IMAGE: str = "/icon-512.png"

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 100
    MAX_PER_PAGE_LIMIT: int = 1000


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
