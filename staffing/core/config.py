"""Runtime configuration, read from the environment and an optional .env file."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Process-wide settings.

    Detection thresholds and switches are not here; they live in the
    notification_settings table so admins can change them at runtime.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    VERSION: str = "0.1.0"

    # SQLite for single-host installs; any SQLAlchemy URL works
    DATABASE_URL: str = "sqlite:///./events.db"
    DB_AUTO_MIGRATE: bool = True

    # Bearer tokens are issued by the portal; we only verify them
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""
    JWT_EXPIRES_HOURS: int = 168

    CORS_ORIGINS: str = "http://localhost:3000"

    # In-process periodic jobs (disable when running staffing.worker separately)
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_POLL_SECONDS: int = 30
    SCHEDULER_TIMEZONE: str = "UTC"
    SCHEDULER_INITIAL_CHECKS: bool = True

    ACTIVITY_LOG_RETENTION_DAYS: int = 90  # 0 keeps everything

    SENTRY_DSN: str = ""

    # Per client, per minute; 0 disables the default limit
    RATE_LIMIT_API: int = 120

    @field_validator("SCHEDULER_TIMEZONE")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Secrets accepted for verification, current one first."""
        return [s for s in (self.JWT_SECRET, self.JWT_SECRET_PREVIOUS) if s]


settings = Settings()
