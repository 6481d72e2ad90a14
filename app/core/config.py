from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    RUN_MIGRATIONS: bool = True

    # Auth tokens
    API_TOKEN: str | None = None  # bearer token for write endpoints
    CRON_TOKEN: str | None = None  # bearer/query token for ingestion jobs

    # Upstream platforms
    YOUTUBE_API_KEY: str | None = None
    USER_AGENT: str = "PullviewPublic/0.1 (+github.com/pullview)"
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Write rate limits (fixed window)
    REPORT_CREATE_LIMIT: int = 10
    REPORT_DELETE_LIMIT: int = 20
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    SLACK_WEBHOOK_URL: str | None = None

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def debug_enabled(self) -> bool:
        """Debug mode is only enabled in development."""
        return self.is_development

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development

    @property
    def ingest_token_required(self) -> bool:
        """Single-source ingestion is open in dev; prod requires the cron token when one is set."""
        return self.is_production and bool(self.CRON_TOKEN)


settings = Settings()
