"""
Command-line interface for the oneliner package.
"""

from .main import build_parser, format_summary, main_cli

__all__ = ["build_parser", "format_summary", "main_cli"]
