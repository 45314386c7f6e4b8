"""Configuration models for the git-since sync filter."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitFilterConfig(BaseModel):
    """Configuration for the git change filter."""

    base_ref: str | None = Field(
        default=None,
        description="Only sync files changed since this Git reference. None disables the filter.",
    )
    project_path: Path = Field(
        default=Path("."), description="Project directory or project file being served"
    )
    refresh_retries: int = Field(
        default=0, ge=0, le=10, description="Retries for a failed refresh after a change notification"
    )
    retry_base_delay: float = Field(
        default=0.5, gt=0.0, description="Initial delay in seconds between refresh retries"
    )
    strict_encoding: bool = Field(
        default=False, description="Fail on non UTF-8 git output instead of decoding lossily"
    )

    @property
    def enabled(self) -> bool:
        """Check if the filter is active."""
        return bool(self.base_ref)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )


class AppConfig(BaseSettings):
    """Main application configuration.

    This class uses pydantic-settings to load configuration from environment
    variables with the APP_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    git_filter: GitFilterConfig = Field(default_factory=GitFilterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
