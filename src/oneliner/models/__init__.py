"""
Data models for the oneliner package.

Command Models:
- The immutable command specification and its priority tiers

Result Models:
- The resolved outcome of one invocation
- Resource usage accumulators written by the monitor

Configuration Models:
- Runner tunables loaded from TOML
"""

# Command models
from .command import CommandSpec, IOPriorityClass, PriorityClass, split_command_line

# Configuration models
from .config import RunnerConfig

# Result models
from .results import CmdResult, Outcome, ResourceSnapshot, ResourceStats

__all__ = [
    # Command
    "CommandSpec",
    "IOPriorityClass",
    "PriorityClass",
    "split_command_line",
    # Configuration
    "RunnerConfig",
    # Results
    "CmdResult",
    "Outcome",
    "ResourceSnapshot",
    "ResourceStats",
]
