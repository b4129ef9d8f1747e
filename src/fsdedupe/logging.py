"""Logging setup for the fsdedupe CLI.

Two handlers hang off the root logger:

- a Rich console handler on stderr, filtered by the ``-v``/``-q`` level;
- an optional *flight recorder*: a `MemoryHandler` that keeps the most
  recent records at DEBUG granularity and writes them to a log file only
  when something at WARNING or above happens (or on exit, if asked to).

The root logger itself is set to DEBUG so the flight recorder sees
everything; each handler does its own filtering.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from dataclasses import dataclass, field
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import Literal, TypeAlias

from rich.console import Console
from rich.logging import RichHandler

PROJECT_PREFIX = "fsdedupe"
DEFAULT_LEVEL = logging.WARNING
DEFAULT_FLIGHT_RECORDER_CAPACITY = 2000
LEVEL_STEP = 10

FILE_FORMAT = (
    "[%(asctime)s] [%(process)d:%(threadName)s] "
    "%(levelname)s %(name)s:%(lineno)d: %(message)s"
)

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


@dataclass(frozen=True)
class LogSettings:  # pylint: disable=too-many-instance-attributes
    """Everything the CLI decided about logging for one run.

    Attributes:
        level: Console threshold (ignored in debug mode, which uses DEBUG).
        debug: Verbose console format with timestamps and source locations.
        color: Allow colored console output.
        log_path: Flight recorder destination.
        flight_recorder: Whether the flight recorder is attached at all.
        capacity: Records kept in memory by the flight recorder.
        force_flush: Write the flight recorder buffer on exit even if no
            warning occurred.
        logger_levels: Per-logger minimum levels, applied after setup.
    """

    level: int = DEFAULT_LEVEL
    debug: bool = False
    color: bool = True
    log_path: Path | None = None
    flight_recorder: bool = False
    capacity: int = DEFAULT_FLIGHT_RECORDER_CAPACITY
    force_flush: bool = False
    logger_levels: dict[str, int] = field(default_factory=dict)

    @property
    def console_level(self) -> int:
        """The level the console handler actually filters at."""
        return logging.DEBUG if self.debug else self.level


def verbosity_level(verbose: int, quiet: int) -> int:
    """Map ``-v``/``-q`` counts to a level, one step per flag, from WARNING.

    The result is clamped to the DEBUG..CRITICAL range.
    """
    level = DEFAULT_LEVEL - LEVEL_STEP * verbose + LEVEL_STEP * quiet
    return max(logging.DEBUG, min(logging.CRITICAL, level))


class ThirdPartyPrefixFilter(logging.Filter):
    """Set ``record.prefix`` to ``[package]`` for loggers outside fsdedupe.

    Project records get an empty prefix. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        own = record.name == PROJECT_PREFIX or record.name.startswith(
            PROJECT_PREFIX + "."
        )
        record.prefix = "" if own else f"[{record.name.partition('.')[0]}]"
        return True


def console_handler(settings: LogSettings) -> RichHandler:
    """Build the stderr console handler for ``settings``."""
    color_system: ColorSystem | None = "auto" if settings.color else None
    handler = RichHandler(
        level=settings.console_level,
        console=Console(color_system=color_system, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=settings.debug,
        enable_link_path=settings.debug,
    )

    if settings.debug:
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(prefix)s %(message)s"))
        handler.addFilter(ThirdPartyPrefixFilter())
    return handler


def flight_recorder_handler(
    path: Path,
    capacity: int = DEFAULT_FLIGHT_RECORDER_CAPACITY,
    flush_on_close: bool = False,
) -> MemoryHandler:
    """Build a memory buffer that dumps to ``path`` on WARNING or above.

    The file is truncated and opened only on the first flush, so a quiet run
    leaves no file behind.
    """
    target = logging.FileHandler(path, mode="w", encoding="utf-8", delay=True)
    target.setLevel(logging.DEBUG)
    target.setFormatter(logging.Formatter(FILE_FORMAT))
    return MemoryHandler(
        capacity,
        flushLevel=logging.WARNING,
        target=target,
        flushOnClose=flush_on_close,
    )


def setup_logging(settings: LogSettings) -> list[logging.Handler]:
    """Install the handlers described by ``settings`` on the root logger.

    Replaces any handlers already installed, then applies the per-logger
    levels.

    Returns:
        The handlers that were installed.
    """
    handlers: list[logging.Handler] = [console_handler(settings)]
    if settings.flight_recorder and settings.log_path is not None:
        handlers.append(
            flight_recorder_handler(
                settings.log_path, settings.capacity, settings.force_flush
            )
        )

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    for name, level in settings.logger_levels.items():
        logging.getLogger(name).setLevel(level)
    return handlers


def log_startup(
    logger: logging.Logger,
    settings: LogSettings,
    handlers: list[logging.Handler],
    app_version: str,
) -> None:
    """Log a one-line INFO banner, then DEBUG diagnostics for bug reports."""
    logger.info(
        "FSDEDUPE %s, console=%s, flight-recorder=%s",
        app_version,
        logging.getLevelName(settings.console_level),
        "ON" if settings.flight_recorder else "OFF",
    )

    diagnostics = {
        "Python": sys.version.split()[0],
        "Platform": f"{platform.system()} {platform.release()}",
        "PID": os.getpid(),
        "CWD": Path.cwd(),
        "Handlers": [type(h).__name__ for h in handlers],
    }
    for key, value in diagnostics.items():
        logger.debug("%s: %s", key, value)

    if settings.flight_recorder:
        logger.debug(
            "Flight recorder: path=%s, capacity=%d, flush_on_close=%s",
            settings.log_path,
            settings.capacity,
            settings.force_flush,
        )
    overrides = {
        name: logging.getLevelName(level)
        for name, level in settings.logger_levels.items()
    }
    logger.debug("Per-logger overrides: %s", overrides or "<none>")
