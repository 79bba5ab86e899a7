"""
Configuration management and singleton pattern.

The runner configuration is loaded once and then shared read-only by every
invocation.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Optional

from ..models.config import RunnerConfig
from ..validation import ErrorSeverity, handle_error
from .loader import load_runner_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[RunnerConfig] = None
_CONFIG_LOCK = threading.Lock()

# Packaged defaults; ONELINER_CONFIG or set_config_path() point elsewhere.
_DEFAULT_CONFIG_FILE_PATH = Path(__file__).parent / "defaults.toml"
_CONFIG_FILE_PATH: Optional[Path] = None

CONFIG_ENV_VAR = "ONELINER_CONFIG"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Args:
        config_path: Path to a TOML file with a ``[runner]`` table
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    # Clear cached config to force reload with new path
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def get_config_path() -> Path:
    """Resolve which file get_config() reads."""
    if _CONFIG_FILE_PATH is not None:
        return _CONFIG_FILE_PATH
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return _DEFAULT_CONFIG_FILE_PATH


def get_config() -> RunnerConfig:
    """
    Get the runner configuration, loading it if necessary.

    Returns:
        The singleton RunnerConfig instance

    Raises:
        FileNotFoundError: If the configured file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    global _CONFIG
    if _CONFIG is None:
        with _CONFIG_LOCK:
            if _CONFIG is None:
                config_path = get_config_path()
                try:
                    _CONFIG = load_runner_config(config_path)
                except Exception as e:
                    handle_error(
                        error=e,
                        context="loading runner configuration",
                        severity=ErrorSeverity.CRITICAL,
                        reraise=True,
                        logger=logger
                    )
                logger.debug(f"Loaded runner configuration from {config_path}")
    return _CONFIG


def is_config_loaded() -> bool:
    """
    Check if configuration has been loaded and cached.
    """
    return _CONFIG is not None
