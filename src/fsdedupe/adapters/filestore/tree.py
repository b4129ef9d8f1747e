"""Filesystem tree helpers for the local store.

Small building blocks the store composes into its operations:

- `os_errors`: turn an ``OSError`` into a `StoreIOError` tagged with the step
  and path.
- `make_dirs`: create a directory and its missing ancestors, all with the
  store's mode.
- `walk`: depth-first, name-sorted traversal yielding ``os.DirEntry``
  objects, checking a cancellation signal between entries.
- `prune_empty_dirs`: remove now-empty ancestors of a directory, stopping at
  the first non-empty one or at the root.
- `replace_with_symlink`: atomically put a symlink at a path, replacing
  whatever file or symlink was there.
"""

from __future__ import annotations

import errno
import logging
import os
import secrets
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from fsdedupe.cancellation import CancelSignal, check_cancelled
from fsdedupe.errors import PruneError, StoreIOError

logger = logging.getLogger(__name__)

SWAP_ATTEMPTS = 16


@contextmanager
def os_errors(operation: str, path: str | os.PathLike[str]) -> Iterator[None]:
    """Re-raise any ``OSError`` from the block as a tagged `StoreIOError`."""
    try:
        yield
    except OSError as e:
        raise StoreIOError(operation, path, e.strerror or str(e)) from e


def make_dirs(path: str, mode: int) -> None:
    """Create ``path`` and any missing ancestors with permission bits ``mode``.

    Unlike `os.makedirs`, the mode applies to every directory created, not
    just the leaf. Existing directories are left alone.

    Raises:
        StoreIOError: A directory could not be created (e.g. a file is in
            the way).
    """
    missing: list[str] = []
    current = path
    while not os.path.isdir(current):
        missing.append(current)
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent

    for directory in reversed(missing):
        with os_errors("mkdir", directory):
            try:
                os.mkdir(directory, mode)
            except FileExistsError:
                if not os.path.isdir(directory):
                    raise


def walk(
    root: str,
    cancel: CancelSignal | None = None,
    *,
    skip: Callable[[os.DirEntry[str]], bool] | None = None,
    missing_ok: bool = False,
) -> Iterator[os.DirEntry[str]]:
    """Yield every entry below ``root``, depth first, siblings sorted by name.

    Directories are yielded before their contents and are never followed
    through symlinks. A directory's listing is read completely before any of
    its entries is yielded, so callers may replace entries as they go.

    Args:
        root: Directory to traverse. The root itself is not yielded.
        cancel: Checked before each entry is processed.
        skip: Entries for which this returns True are neither yielded nor
            descended into.
        missing_ok: Treat a missing directory as empty instead of failing.

    Raises:
        OperationCancelled: ``cancel`` was set.
        StoreIOError: A directory could not be read.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except FileNotFoundError as e:
        if missing_ok:
            return
        raise StoreIOError("readdir", root, e.strerror or str(e)) from e
    except OSError as e:
        raise StoreIOError("readdir", root, e.strerror or str(e)) from e

    for entry in entries:
        check_cancelled(cancel)
        if skip is not None and skip(entry):
            continue
        yield entry
        if entry.is_dir(follow_symlinks=False):
            yield from walk(entry.path, cancel, skip=skip, missing_ok=missing_ok)


def is_dir_empty(path: str) -> bool:
    """Return True if the directory at ``path`` has no entries.

    Raises:
        OSError: ``path`` cannot be listed (missing, not a directory, ...).
    """
    with os.scandir(path) as it:
        return next(it, None) is None


def prune_empty_dirs(root: str, start: str) -> list[str]:
    """Remove ``start`` and its ancestors while they are empty.

    Walks upward from ``start`` toward ``root``. Each directory is removed
    only if it is currently empty; the walk stops at the first non-empty
    directory. ``root`` itself is never removed, and paths outside ``root``
    are never touched. A directory that no longer exists counts as already
    pruned and the walk moves on to its parent, so pruning is idempotent.

    Returns:
        The directories that were removed, deepest first.

    Raises:
        PruneError: A directory could not be inspected or removed.
    """
    root = os.path.normpath(root)
    current = os.path.normpath(start)
    removed: list[str] = []

    while current != root and _is_below(current, root):
        try:
            empty = is_dir_empty(current)
        except FileNotFoundError:
            current = os.path.dirname(current)
            continue
        except NotADirectoryError:
            return removed
        except OSError as e:
            raise PruneError("check empty", current, e.strerror or str(e)) from e

        if not empty:
            return removed

        try:
            os.rmdir(current)
        except FileNotFoundError:
            pass
        except OSError as e:
            # repopulated between the check and the removal
            if e.errno in (errno.ENOTEMPTY, errno.EEXIST):
                return removed
            raise PruneError("rmdir", current, e.strerror or str(e)) from e
        else:
            logger.debug("Pruned empty directory %s", current)
            removed.append(current)

        current = os.path.dirname(current)

    return removed


def replace_with_symlink(target: str, path: str) -> None:
    """Atomically make ``path`` a symlink to ``target``.

    The symlink is first created under a hidden, randomly named sibling of
    ``path`` and then renamed over it, so an observer sees either the old
    entry or the new symlink, never neither. Name collisions of the
    temporary symlink are retried with a fresh name.

    Raises:
        StoreIOError: The temporary symlink could not be created, or could
            not be renamed over ``path`` (e.g. ``path`` is a directory). The
            temporary symlink is removed in the latter case.
    """
    directory, name = os.path.split(path)

    for _ in range(SWAP_ATTEMPTS):
        temp_link = os.path.join(directory, f".{name}.{secrets.token_hex(6)}.tmp")
        try:
            os.symlink(target, temp_link)
        except FileExistsError:
            continue
        except OSError as e:
            raise StoreIOError("symlink", temp_link, e.strerror or str(e)) from e
        break
    else:
        raise StoreIOError("symlink", path, "no free temporary name")

    try:
        os.replace(temp_link, path)
    except OSError as e:
        discard(temp_link)
        raise StoreIOError("replace", path, e.strerror or str(e)) from e


def discard(path: str) -> None:
    """Best-effort removal of a leftover temporary entry."""
    try:
        os.unlink(path)
    except OSError:
        logger.warning("Could not remove temporary entry %s", path, exc_info=True)


def _is_below(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        return False
