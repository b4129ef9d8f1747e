"""FSDEDUPE CLI entry point.

Defines the top-level ``fsdedupe`` command (via Click-Extra), configures
logging, and registers the subcommands.

Available commands
- ``fsdedupe dir-symlink``: replace duplicate files under a directory with symlinks.
- ``fsdedupe symlink``: same, for a list of paths read from a file or stdin.
- ``fsdedupe store``: put/cat/mv/rm/gc on a deduplicated link store.

Examples
    $ fsdedupe --version
    $ fsdedupe dir-symlink -v ~/Downloads
    $ find . -name '*.iso' | fsdedupe symlink
"""

import logging
from pathlib import Path

import click
import click_extra as clickx
from platformdirs import user_log_dir

from fsdedupe import __version__
from fsdedupe.logging import (
    DEFAULT_FLIGHT_RECORDER_CAPACITY,
    LogSettings,
    log_startup,
    setup_logging,
    verbosity_level,
)

from .dedupe import dir_symlink, symlink
from .helpers.log_level_parser import DEFAULT_LIB_LEVELS, parse_log_level
from .store import store

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = (
    Path(user_log_dir("fsdedupe", appauthor=False, ensure_exists=True)) / "latest.log"
)

HELP = """FSDEDUPE command-line interface.

    FSDEDUPE stores identical file content once. Files are named by the SHA-512
    digest of their bytes and exposed through symlinks, either in a managed
    link tree (``fsdedupe store``) or in place, replacing duplicate files in an
    existing directory (``fsdedupe dir-symlink``, ``fsdedupe symlink``).
    """


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
)
@click.option(
    "-v",
    "--verbose",
    "verbose",
    count=True,
    help="Show more on the console: -v for INFO, -vv for DEBUG.",
)
@click.option(
    "-q",
    "--quiet",
    "quiet",
    count=True,
    help="Show less on the console: -q for ERROR only, -qq for CRITICAL only.",
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Log everything at DEBUG, with timestamps and source locations.",
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_LOG_PATH,
    envvar="FSDEDUPE_LOG_PATH",
    show_default=True,
    show_envvar=True,
    help="File the flight recorder writes to.",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    default=True,
    envvar="FSDEDUPE_FLIGHT_RECORDER",
    show_envvar=True,
    help=(
        "Buffer recent DEBUG records in memory, whatever -v/-q say, and dump "
        "them to --log-path as soon as a warning or error is logged."
    ),
)
@click.option(
    "--flight-recorder-capacity",
    type=click.IntRange(min=1),
    default=DEFAULT_FLIGHT_RECORDER_CAPACITY,
    envvar="FSDEDUPE_FLIGHT_RECORDER_CAPACITY",
    hidden=True,
    help="Number of records the flight recorder keeps.",
)
@click.option(
    "--force-flush/--no-force-flush",
    default=False,
    envvar="FSDEDUPE_FORCE_FLUSH_FLIGHT_RECORDER",
    show_default=True,
    show_envvar=True,
    help="Dump the flight recorder on exit even if nothing went wrong.",
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    default=tuple(
        f"{name}={logging.getLevelName(level)}"
        for name, level in DEFAULT_LIB_LEVELS.items()
    ),
    envvar="FSDEDUPE_LOGGER_LEVELS",
    show_default=True,
    show_envvar=True,
    help=(
        "Minimum level for one logger, as NAME=LEVEL, e.g. "
        "-L fsdedupe.adapters=DEBUG. Repeatable; the env var takes a "
        "comma or space separated list."
    ),
)
@clickx.pass_context
def fsdedupe(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose: int,
    quiet: int,
    debug: bool,
    log_path: Path,
    flight_recorder: bool,
    flight_recorder_capacity: int,
    force_flush: bool,
    logger_levels: dict[str, int],
) -> None:
    """FSDEDUPE command-line interface."""
    settings = LogSettings(
        level=verbosity_level(verbose, quiet),
        debug=debug,
        color=ctx.color is not False,
        log_path=log_path,
        flight_recorder=flight_recorder,
        capacity=flight_recorder_capacity,
        force_flush=force_flush,
        logger_levels=logger_levels,
    )
    handlers = setup_logging(settings)
    log_startup(logger, settings, handlers, __version__)

    # flushes the flight recorder once the subcommand is done
    ctx.call_on_close(logging.shutdown)


fsdedupe.add_command(dir_symlink)
fsdedupe.add_command(symlink)
fsdedupe.add_command(store)
