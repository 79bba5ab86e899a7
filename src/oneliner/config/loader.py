"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the TOML file that
holds the runner tunables.
"""

import logging
import tomllib
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

from ..models.config import RunnerConfig
from ..validation import (
    ErrorSeverity,
    ValidationError,
    handle_error,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

_INTEGER_FIELDS = {"exit_code_max_retries"}
_STRING_FIELDS = {"output_encoding", "io_priority_tool"}


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.debug(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def validate_runner_config(data: Dict[str, Any]) -> RunnerConfig:
    """
    Build a RunnerConfig from the ``[runner]`` table.

    Missing keys keep their defaults; unknown keys are logged and ignored.

    Raises:
        ValidationError: If a value has the wrong type or range
    """
    known = {f.name for f in fields(RunnerConfig)}
    values: Dict[str, Any] = {}

    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown runner option '{key}'")
            continue
        if key in _INTEGER_FIELDS:
            values[key] = validate_positive_integer(value, min_value=0, field_name=key)
        elif key in _STRING_FIELDS:
            if not isinstance(value, str) or not value:
                raise ValidationError(f"{key} must be a non-empty string, got {value!r}",
                                      field_name=key, value=value)
            values[key] = value
        else:
            values[key] = validate_positive_float(value, field_name=key)

    return RunnerConfig(**values)


def load_runner_config(config_path: Path) -> RunnerConfig:
    """
    Load the runner configuration from a TOML file.

    Args:
        config_path: Path to the TOML file

    Returns:
        Validated RunnerConfig
    """
    data = load_toml_file(config_path, "runner configuration file")
    return validate_runner_config(data.get("runner", {}))
