"""Output format utilities for gitstore CLI commands.

This module provides a unified way to handle output formats across commands.
"""

from enum import Enum
from typing import Callable
import functools
import click


class OutputFormat(str, Enum):
    """Supported output formats for CLI commands."""

    TEXT = "text"
    JSON = "json"


def format_option(default: OutputFormat = OutputFormat.TEXT) -> Callable:
    """Create a Click option decorator for output format selection.

    Provides:
    - --format with choices: text, json
    - --json alias for json format

    Args:
        default: The default output format.

    Returns:
        A decorator function that adds format options to a Click command.

    Example:
        @click.command()
        @format_option()
        def my_command(format: str):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, json_flag: bool = False, **kwargs):
            if json_flag:
                kwargs["format"] = OutputFormat.JSON.value
            return func(*args, **kwargs)

        wrapper = click.option(
            "--format",
            "format",
            type=click.Choice([f.value for f in OutputFormat]),
            default=default.value,
            help=f"Output format (default: {default.value}).",
            show_default=False,
        )(wrapper)

        wrapper = click.option(
            "--json",
            "json_flag",
            is_flag=True,
            help="Output in JSON format (alias for --format json).",
        )(wrapper)

        return wrapper

    return decorator
