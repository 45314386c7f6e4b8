"""Configuration loader for the git-since sync filter."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from src.models.config import AppConfig

log = structlog.stdlib.get_logger()

CONFIG_DIR = Path(__file__).parent.parent.parent / "config"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class ConfigLoader:
    """Loads and validates configuration from YAML files and environment variables."""

    def __init__(self, config_dir: Path = CONFIG_DIR) -> None:
        """Initialize the ConfigLoader.

        Args:
            config_dir: Directory holding the per-environment YAML files
        """
        self.config_dir = Path(config_dir)
        self.env_var_pattern = re.compile(r"\$\{([^}]+)\}")

    def load_config(self, config_path: Optional[str] = None) -> AppConfig:
        """Load configuration from a YAML file with environment variable overrides.

        Without an explicit path the file for ``APP_ENV`` (or ``default.yaml``)
        is used; when neither exists, configuration comes from the environment
        alone.

        Args:
            config_path: Path to the configuration YAML file

        Returns:
            AppConfig: Validated application configuration

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if config_path is None:
            config_path = self._get_default_config_path()

        if config_path is None:
            log.info("loading_configuration_from_environment")
            config_dict: Dict[str, Any] = {}
        else:
            log.info("loading_configuration", config_path=config_path)
            config_dict = self._substitute_env_vars(self._load_yaml_file(config_path))

        try:
            app_config = AppConfig(**config_dict)
        except ValidationError as e:
            log.error("configuration_validation_failed", error=str(e))
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        log.info(
            "configuration_loaded_successfully",
            git_filter_enabled=app_config.git_filter.enabled,
        )
        return app_config

    def _get_default_config_path(self) -> Optional[str]:
        """Get the configuration file for the current environment, if any."""
        env = os.getenv("APP_ENV", "default")
        for candidate in (self.config_dir / f"{env}.yaml", self.config_dir / "default.yaml"):
            if candidate.exists():
                return str(candidate)
        return None

    def _load_yaml_file(self, config_path: str) -> Dict[str, Any]:
        """Load YAML configuration file.

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(config_path, "r") as f:
                config_dict = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {config_path}: {e}")

        if config_dict is None:
            raise ConfigurationError(f"Configuration file is empty: {config_path}")
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

        log.debug("yaml_file_loaded", config_path=config_path)
        return config_dict

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute ${VAR_NAME} environment variables in configuration.

        Raises:
            ConfigurationError: If a referenced environment variable is not set
        """
        if isinstance(config, dict):
            return {key: self._substitute_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_var_in_string(config)
        else:
            return config

    def _substitute_env_var_in_string(self, value: str) -> str:
        matches = self.env_var_pattern.findall(value)

        for var_name in matches:
            env_value = os.getenv(var_name)
            if env_value is None:
                raise ConfigurationError(
                    f"Required environment variable not set: {var_name}. "
                    f"Please set {var_name} in your environment or .env file."
                )
            value = value.replace(f"${{{var_name}}}", env_value)

        return value

    def validate_config(self, config: AppConfig) -> list[str]:
        """Validate configuration and return any warnings.

        Args:
            config: Application configuration to validate

        Returns:
            List of warning messages (empty if no warnings)
        """
        warnings = []

        if not config.git_filter.enabled:
            warnings.append("git_filter.base_ref is not set; every path will be synced")

        if not config.git_filter.project_path.exists():
            warnings.append(
                f"git_filter.project_path '{config.git_filter.project_path}' does not exist"
            )

        if not isinstance(logging.getLevelName(config.logging.log_level.upper()), int):
            warnings.append(
                f"logging.log_level '{config.logging.log_level}' is not a known level; "
                f"INFO will be used"
            )

        if warnings:
            log.warning("configuration_validation_warnings", warnings=warnings)

        return warnings
