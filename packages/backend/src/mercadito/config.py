"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars (and a local .env file).
MONGO_URL and SESSION_SECRET have no defaults: a missing value stops the
process before anything else is wired up.

Learn: load_settings() is the only place that turns pydantic's
ValidationError into StartupError. Callers never see a half-built
Settings object.
"""

from typing import Literal, Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mercadito.errors import StartupError

# Must match app_logging.SEVERITIES
LogLevel = Literal["fatal", "error", "warning", "info", "http", "debug"]


class Settings(BaseSettings):
    """All app configuration. Set via plain env vars (PORT, MONGO_URL, ...)."""

    # Storage
    mongo_url: str = Field(..., min_length=1)
    mongo_db: str = "ecommerce"

    # Sessions
    session_secret: str = Field(..., min_length=1)
    session_ttl_seconds: int = 3600
    session_cookie: str = "sid"

    # Server
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 8080

    # Logging — defaults to debug in development, info elsewhere
    log_level: Optional[LogLevel] = None

    # Registering with this email grants the admin role
    admin_email: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level", mode="before")
    @classmethod
    def lowercase_log_level(cls, value):
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def resolve_log_level(self):
        if self.log_level is None:
            self.log_level = "debug" if self.environment == "development" else "info"
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def load_settings(**overrides) -> Settings:
    """Build Settings or fail fast with StartupError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = sorted(
            str(err["loc"][0]).upper() for err in e.errors() if err.get("loc")
        )
        raise StartupError(
            f"Invalid or missing configuration: {', '.join(missing) or e}"
        ) from e
