"""Configuration with pydantic-settings.

Environment (and an optional .env file) is read once into Settings. CLI
flags are then merged on top by resolve_config(), which produces the frozen
AppConfig passed explicitly to the dispatcher. Nothing else reads the
environment.
"""

from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from newrelic_apikeys.errors import ConfigError, MissingCredentialError
from newrelic_apikeys.models import OutputFormat

DEFAULT_ENDPOINT = "https://api.newrelic.com/graphql"
DEFAULT_TIMEOUT = 30.0
API_KEY_ENV_VAR = "NEW_RELIC_API_KEY"


class Settings(BaseSettings):
    """Environment-backed settings. Every field is optional."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(
        default=None,
        alias=API_KEY_ENV_VAR,
        description="New Relic user API key",
    )
    endpoint: str | None = Field(
        default=None,
        alias="NEW_RELIC_GRAPHQL_ENDPOINT",
        description="NerdGraph endpoint URL",
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT,
        gt=0,
        alias="NEW_RELIC_TIMEOUT",
        description="HTTP timeout in seconds",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v


class GlobalOptions(BaseModel):
    """Global CLI flags exactly as given, before environment fallback."""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = Field(default=None, repr=False)
    endpoint: str | None = None
    output_format: OutputFormat = OutputFormat.JSON
    verbose: bool = False


class AppConfig(BaseModel):
    """Resolved, immutable configuration for one invocation."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(..., min_length=1, repr=False)
    endpoint: str = DEFAULT_ENDPOINT
    output_format: OutputFormat = OutputFormat.JSON
    verbose: bool = False
    timeout: float = DEFAULT_TIMEOUT


def resolve_config(
    options: GlobalOptions | None = None,
    settings: Settings | None = None,
) -> AppConfig:
    """Merge CLI flags over environment over defaults.

    Raises:
        MissingCredentialError: If neither the flag nor the environment
            provides an API key.
    """
    options = options or GlobalOptions()
    settings = settings or load_settings()

    resolved_key = options.api_key or settings.api_key
    if not resolved_key or not resolved_key.strip():
        raise MissingCredentialError(API_KEY_ENV_VAR)

    return AppConfig(
        api_key=resolved_key.strip(),
        endpoint=options.endpoint or settings.endpoint or DEFAULT_ENDPOINT,
        output_format=options.output_format,
        verbose=options.verbose,
        timeout=settings.timeout,
    )


def load_settings() -> Settings:
    """Read Settings from the environment.

    Raises:
        ConfigError: If an environment value is present but invalid.
    """
    try:
        return Settings()
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid environment configuration: {e}") from e
