"""
Configuration management for the oneliner package.

This module provides a clean interface for loading, validating, and accessing
the runner tunables from a TOML file with singleton pattern management.
"""

# Main configuration interface
from .manager import (
    CONFIG_ENV_VAR,
    clear_config_cache,
    get_config,
    get_config_path,
    is_config_loaded,
    set_config_path,
)

# For advanced usage - direct access to the loader
from .loader import (
    load_runner_config,
    load_toml_file,
    validate_runner_config,
)

__all__ = [
    # Main interface
    "CONFIG_ENV_VAR",
    "get_config",
    "get_config_path",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    # Advanced interface
    "load_toml_file",
    "load_runner_config",
    "validate_runner_config",
]
