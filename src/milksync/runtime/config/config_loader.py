"""Configuration loading with environment variable substitution."""

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from milksync.core.errors import ConfigError
from milksync.runtime.config.config_data import SyncConfig
from milksync.runtime.config.config_utils import substitute_env_vars

CONFIG_PATH = Path("milksync.yaml")


def default_config_path() -> Path:
    """Return the config path from MILKSYNC_CONFIG, or milksync.yaml."""
    override = os.getenv("MILKSYNC_CONFIG")
    return Path(override) if override else CONFIG_PATH


def _apply_environment_overrides(env_mode: str) -> None:
    """Promote {ENV_MODE}_* variables to their unprefixed names.

    For example DEVELOPMENT_SYNC_PROD_DB_HOST sets SYNC_PROD_DB_HOST while
    running with APP_ENVIRONMENT=development.
    """
    prefix = f"{env_mode.upper()}_"
    env_variables = [
        (var, value) for var, value in os.environ.items() if var.startswith(prefix)
    ]
    logger.info(f"Applying {len(env_variables)} environment-specific overrides")

    for var_name, var_value in env_variables:
        new_var_name = var_name[len(prefix) :]
        os.environ[new_var_name] = var_value
        logger.debug(f"Set environment variable {new_var_name} from {var_name}")


def load_config(file_path: Path | None = None) -> SyncConfig:
    """
    Load milksync.yaml with environment variable substitution.

    Args:
        file_path: Path to the YAML file (default: MILKSYNC_CONFIG or milksync.yaml)

    Returns:
        Validated SyncConfig

    Raises:
        ConfigError: If the file is missing, a required environment variable
                     is unset, the YAML is malformed, or validation fails

    YAML Structure Requirements:
        The YAML file must have a top-level 'config:' key containing configuration data.
    """
    file_path = file_path or default_config_path()

    try:
        content = file_path.read_text()
    except FileNotFoundError as e:
        raise ConfigError(f"Could not find configuration file at {file_path}") from e

    env_mode = os.getenv("APP_ENVIRONMENT", "development")
    logger.info(f"Loading configuration for environment: {env_mode}")
    _apply_environment_overrides(env_mode)

    try:
        content = substitute_env_vars(content)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    try:
        loaded: dict[str, Any] | None = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML: {e}") from e

    if not loaded or "config" not in loaded:
        raise ConfigError("Invalid YAML structure: missing 'config' key")

    try:
        return SyncConfig(**(loaded["config"] or {}))
    except ValidationError as e:
        raise ConfigError("Invalid configuration", details=str(e)) from e
