"""FSDEDUPE in-place dedupe commands.

- ``fsdedupe dir-symlink [-v] [DIR]`` scans DIR (default ``.``) and replaces
  every duplicate regular file with a symlink to the first copy found.
- ``fsdedupe symlink [-v] [FILE]`` does the same for the paths listed in FILE
  (default stdin), one per line.

With ``-v`` every replacement is reported on stderr as
``symlink <path> -> <target>``. SIGINT/SIGTERM stop the run between files.
"""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

import click

from fsdedupe.service_layer.dedupe import (
    DedupeSummary,
    dedupe_dir_symlink,
    dedupe_symlink,
    lines,
)

from .helpers import action, cancel_on_signals, store_errors, success

VERBOSE_HELP = "Report every replacement on stderr."


def _report(summary: DedupeSummary) -> None:
    success(
        f"Replaced {summary.replaced} of {summary.scanned} file(s) with symlinks."
    )


@click.command("dir-symlink")
@click.option("-v", "--verbose", "verbose", is_flag=True, help=VERBOSE_HELP)
@click.argument(
    "directories",
    metavar="[DIR]",
    nargs=-1,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
def dir_symlink(verbose: bool, directories: tuple[Path, ...]) -> None:
    """Deduplicate DIR using symlinks (default: current directory).

    Hidden files and directories are left alone, as are existing symlinks.
    """
    if len(directories) > 1:
        raise click.UsageError(
            f"Only one directory path is expected, got {len(directories)}."
        )
    directory = directories[0] if directories else Path(".")

    with cancel_on_signals() as token, store_errors():
        summary = dedupe_dir_symlink(
            directory, cancel=token, log=action if verbose else _quiet
        )
    _report(summary)


@click.command("symlink")
@click.option("-v", "--verbose", "verbose", is_flag=True, help=VERBOSE_HELP)
@click.argument("source", metavar="[FILE]", type=click.File("r"), default="-")
def symlink(verbose: bool, source: TextIO) -> None:
    """Deduplicate the files listed in FILE, one path per line (default: stdin).

    Blank lines are ignored. Every listed path must be a regular file.
    """
    with cancel_on_signals() as token, store_errors():
        summary = dedupe_symlink(
            lines(source), cancel=token, log=action if verbose else _quiet
        )
    _report(summary)


def _quiet(line: str) -> None:  # pylint: disable=unused-argument
    pass
