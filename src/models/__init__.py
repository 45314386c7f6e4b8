"""Data models for the git-since sync filter."""

from src.models.config import AppConfig, GitFilterConfig, LoggingConfig

__all__ = [
    "AppConfig",
    "GitFilterConfig",
    "LoggingConfig",
]
