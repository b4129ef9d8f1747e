"""Parse ``-L NAME=LEVEL`` options into per-logger levels.

Values may be repeated on the command line or given as one comma/space
separated list (as the ``FSDEDUPE_LOGGER_LEVELS`` environment variable is).
"""

import logging
import re

import click

# markdown_it (pulled in by rich) is chatty at DEBUG
DEFAULT_LIB_LEVELS = {"markdown_it": logging.WARNING}

_SEPARATORS = re.compile(r"[,\s]+")


def _normalize_items(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Flatten a string or a sequence of strings into non-empty items."""
    if value is None:
        return []
    chunks = [value] if isinstance(value, str) else list(value)
    return [item for chunk in chunks for item in _SEPARATORS.split(chunk) if item]


def parse_log_level(
    ctx: click.Context,  # pylint: disable=unused-argument
    param: click.Parameter | None,  # pylint: disable=unused-argument
    value: str | list[str] | tuple[str, ...] | None,
) -> dict[str, int]:
    """Click callback turning NAME=LEVEL items into a name -> level mapping.

    The result starts from `DEFAULT_LIB_LEVELS`; later items override earlier
    ones. LEVEL is a standard logging level name, case-insensitive.

    Raises:
        click.BadParameter: An item is not NAME=LEVEL, NAME is empty, or
            LEVEL is not a known level name.
    """
    levels = dict(DEFAULT_LIB_LEVELS)
    for item in _normalize_items(value):
        name, sep, level_str = item.partition("=")
        name = name.strip()
        if not sep or not name:
            raise click.BadParameter(f"Expected NAME=LEVEL, got {item!r}")
        lvl = logging.getLevelName(level_str.strip().upper())
        if not isinstance(lvl, int):
            raise click.BadParameter(f"Invalid log level: {level_str}")
        levels[name] = lvl
    return levels
