"""
Validation functions for command specifications and runner configuration.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Type, TypeVar, Union

from .exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a non-negative float.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_working_directory(
    path: Union[str, Path], field_name: str = "working_directory"
) -> str:
    """
    Validate that a path exists and is a directory.

    Args:
        path: Path to validate
        field_name: Name of the field being validated

    Returns:
        Validated path string

    Raises:
        ValidationError: If the path is missing or is not a directory
    """
    path_str = os.fspath(path)
    if os.path.isfile(path_str):
        raise ValidationError(
            f"{field_name} is a file, not a directory: {path_str}",
            field_name=field_name,
            value=path_str
        )
    if not os.path.isdir(path_str):
        raise ValidationError(
            f"{field_name} does not exist: {path_str}",
            field_name=field_name,
            value=path_str
        )
    return path_str


def validate_enum_choice(
    value: Any,
    enum_type: Type[E],
    field_name: str = "value",
) -> E:
    """
    Resolve a value to a member of ``enum_type``.

    Accepts a member, or its name in any case with '-' allowed for '_'
    (so "below-normal" resolves to ``BELOW_NORMAL``).

    Raises:
        ValidationError: If value names no member
    """
    if isinstance(value, enum_type):
        return value

    names = [member.name for member in enum_type]
    key = str(value).strip().upper().replace("-", "_")
    if key not in names:
        choices = [name.lower().replace("_", "-") for name in names]
        raise ValidationError(
            f"{field_name} must be one of {choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return enum_type[key]
