"""In-place symlink deduplication of existing files.

Two entry points share one idea: hash every input file with SHA-512, keep
the first file seen for each digest, and turn every later file with the
same digest into a symlink to that first one.

- `dedupe_dir_symlink` scans a directory tree. Hidden (dot-prefixed)
  entries and anything that is not a regular file are skipped silently.
- `dedupe_symlink` takes an iterable of paths, e.g. `lines(sys.stdin)`.
  Inputs that are not regular files are an error.

Both build their digest index locally, per call, and replace files through
a temporary symlink renamed over the original, so an observer never sees a
missing file.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from fsdedupe.adapters.filestore.tree import os_errors, replace_with_symlink, walk
from fsdedupe.cancellation import check_cancelled
from fsdedupe.errors import NotARegularFile, NotFound, StoreIOError
from fsdedupe.hashing import hash_file

if TYPE_CHECKING:
    from fsdedupe.cancellation import CancelSignal

logger = logging.getLogger(__name__)

ActionLogger = Callable[[str], None]


def _discard_line(line: str) -> None:  # pylint: disable=unused-argument
    """Default action logger: drop the line."""


@dataclass
class DedupeSummary:
    """Counters of a dedupe run.

    Attributes:
        scanned: Regular files hashed.
        replaced: Files replaced by a symlink to an identical earlier file.
    """

    scanned: int = 0
    replaced: int = 0


def lines(stream: TextIO) -> Iterator[str]:
    """Yield the stripped, non-blank lines of ``stream``, lazily.

    The iterator is finite and cannot be restarted; exhaustion of ``stream``
    simply ends it.
    """
    for raw in stream:
        line = raw.strip()
        if line:
            yield line


def dedupe_dir_symlink(
    root: str | os.PathLike[str],
    cancel: CancelSignal | None = None,
    log: ActionLogger = _discard_line,
) -> DedupeSummary:
    """Replace duplicate files under ``root`` with symlinks to the first copy.

    Entries are visited depth first with siblings in name order, which makes
    "first" deterministic. Hidden entries are not visited at all (hidden
    directories are not descended into); symlinks and other non-regular
    files are skipped. Symlink targets are absolute paths.

    Args:
        root: Directory to deduplicate.
        cancel: Checked between filesystem entries.
        log: Receives one human-readable line per action taken.

    Returns:
        DedupeSummary: How many files were hashed and replaced.

    Raises:
        OperationCancelled: ``cancel`` was set.
        StoreIOError: A directory could not be read, a file could not be
            hashed, or a symlink could not be swapped in.
    """
    root_path = os.path.abspath(os.fspath(root))
    first_seen: dict[str, str] = {}
    summary = DedupeSummary()

    for entry in walk(root_path, cancel, skip=_is_hidden):
        if not entry.is_file(follow_symlinks=False):
            continue

        with os_errors("hash", entry.path):
            digest = hash_file(entry.path)
        summary.scanned += 1

        existing = first_seen.setdefault(digest, entry.path)
        if existing == entry.path:
            continue

        replace_with_symlink(existing, entry.path)
        summary.replaced += 1
        logger.debug("Replaced %s with symlink to %s", entry.path, existing)
        log(f"symlink {entry.path} -> {existing}")

    logger.info(
        "Scanned %d file(s) under %s, replaced %d duplicate(s)",
        summary.scanned,
        root_path,
        summary.replaced,
    )
    return summary


def dedupe_symlink(
    paths: Iterable[str],
    cancel: CancelSignal | None = None,
    log: ActionLogger = _discard_line,
) -> DedupeSummary:
    """Replace each path whose content was seen before with a symlink.

    The first path seen for a digest is kept; later ones become symlinks to
    its absolute path. A path that names the same file as the kept one (e.g.
    listed twice) is left alone.

    Args:
        paths: Paths of regular files (symlinks to regular files are hashed
            through the link).
        cancel: Checked before each path.
        log: Receives one human-readable line per action taken.

    Returns:
        DedupeSummary: How many files were hashed and replaced.

    Raises:
        OperationCancelled: ``cancel`` was set.
        NotFound: A path does not exist.
        NotARegularFile: A path is a directory or other non-regular file.
        StoreIOError: A file could not be hashed or replaced.
    """
    first_seen: dict[str, str] = {}
    summary = DedupeSummary()

    for path in paths:
        check_cancelled(cancel)

        try:
            st = os.stat(path)
        except FileNotFoundError as e:
            raise NotFound(path) from e
        except OSError as e:
            raise StoreIOError("stat", path, e.strerror or str(e)) from e
        if not stat.S_ISREG(st.st_mode):
            raise NotARegularFile(path)

        with os_errors("hash", path):
            digest = hash_file(path)
        summary.scanned += 1

        absolute = os.path.abspath(path)
        existing = first_seen.setdefault(digest, absolute)
        if existing == absolute:
            continue
        with os_errors("stat", path):
            same_file = os.path.samefile(existing, path)
        if same_file:
            continue

        replace_with_symlink(existing, absolute)
        summary.replaced += 1
        logger.debug("Replaced %s with symlink to %s", path, existing)
        log(f"symlink {path} -> {existing}")

    logger.info(
        "Scanned %d file(s), replaced %d duplicate(s)", summary.scanned, summary.replaced
    )
    return summary


def _is_hidden(entry: os.DirEntry[str]) -> bool:
    return entry.name.startswith(".")
