"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version
    VERSION: str = "0.1.0"

    # Database
    DATABASE_URL: str = "sqlite:///./booking_engine.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Scheduling
    DEFAULT_TIMEZONE: str = "America/Los_Angeles"
    SLOT_STEP_MINUTES: int = 15
    DEFAULT_SLOT_MINUTES: int = 60  # Block used by range summaries without a service
    MAX_RANGE_DAYS: int = 62

    # Ledger storage retries (business-rule failures are never retried)
    LEDGER_MAX_RETRIES: int = 3
    LEDGER_RETRY_BASE_DELAY: float = 0.05

    # External collaborators (empty URL = disabled)
    PAYMENT_SERVICE_URL: str = ""
    PAYMENT_TIMEOUT_SECONDS: float = 3.0
    PAYMENT_MAX_ATTEMPTS: int = 2
    NOTIFICATION_WEBHOOK_URL: str = ""
    CURRENCY: str = "usd"

    # Rate Limiting (requests per minute)
    RATE_LIMIT_BOOKING: int = 30

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
