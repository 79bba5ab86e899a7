"""
Command execution for the oneliner package.

This module provides the run primitive and the exit resolution state
machine behind it.
"""

from .resolver import ExitResolver, annotate, raise_for_outcome
from .runner import run, run_command, set_io_priority

__all__ = [
    "ExitResolver",
    "annotate",
    "raise_for_outcome",
    "run",
    "run_command",
    "set_io_priority",
]
