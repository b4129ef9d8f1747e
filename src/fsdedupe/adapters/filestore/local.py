"""Local filesystem-based deduplicated store adapter.

Layout on disk::

    <temp>/<unix-ns>-<random>.bin       staging files of in-progress writes
    <data>/<sha512-hex>.bin             one file per unique content (0666 & ~umask)
    <link>/<nested path>                symlinks to absolute data paths

A write streams into a staging file under *temp* while hashing. On commit
the staging file is renamed into *data* under its digest (atomic; an
existing data file with the same name holds identical bytes, so the rename
is idempotent) and a symlink to it is swapped into place under *link*.

Known race: the store does no locking. A `gc()` running while another
writer commits can delete a data file in the window between its rename into
*data* and the publication of its symlink. Run `gc()` only while no writes
are in flight.
"""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import tempfile
import time
from pathlib import Path
from typing import IO, TYPE_CHECKING, BinaryIO

from fsdedupe.cancellation import check_cancelled
from fsdedupe.errors import (
    BrokenLink,
    IntegrityError,
    InvalidLinkPath,
    NotARegularFile,
    NotFound,
    PathResolutionError,
    PruneError,
    StoreIOError,
)
from fsdedupe.hashing import is_valid_digest, new_hasher

from . import tree
from .api import AbstractDedupeStore, AbstractLinkWriter, BlobStat

if TYPE_CHECKING:
    from fsdedupe.cancellation import CancelSignal

logger = logging.getLogger(__name__)

DATA_SUFFIX = ".bin"
DEFAULT_DIR_MODE = 0o700
DATA_FILE_MODE = 0o666


class LocalDedupeStore(AbstractDedupeStore):
    """Deduplicated store backed by three directories on the local filesystem.

    The store is plain configuration: it holds no open resources and creates
    its directories lazily, on first use.

    Args:
        temp_dir: Staging area for in-progress writes.
        data_dir: Content-addressed data files.
        link_dir: The user-visible tree of links.
        dir_mode: Permission bits for directories the store creates;
            ``0`` means ``0o700``.

    Raises:
        PathResolutionError: A relative root could not be made absolute.
    """

    def __init__(
        self,
        temp_dir: str | os.PathLike[str],
        data_dir: str | os.PathLike[str],
        link_dir: str | os.PathLike[str],
        dir_mode: int = 0,
    ) -> None:
        self._temp_dir = _absolute("temp", temp_dir)
        self._data_dir = _absolute("data", data_dir)
        self._link_dir = _absolute("link", link_dir)
        self._dir_mode = dir_mode or DEFAULT_DIR_MODE
        self._file_mode = DATA_FILE_MODE & ~_current_umask()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(temp_dir={self._temp_dir!r}, "
            f"data_dir={self._data_dir!r}, link_dir={self._link_dir!r}, "
            f"dir_mode={oct(self._dir_mode)})"
        )

    @property
    def temp_dir(self) -> Path:
        """Absolute staging directory."""
        return Path(self._temp_dir)

    @property
    def data_dir(self) -> Path:
        """Absolute data directory."""
        return Path(self._data_dir)

    @property
    def link_dir(self) -> Path:
        """Absolute link root."""
        return Path(self._link_dir)

    @property
    def dir_mode(self) -> int:
        """Permission bits used for directories the store creates."""
        return self._dir_mode

    # --- Core Operations ---

    def create(self, link: str, *, fsync: bool = False) -> LocalLinkWriter:
        link_path = self._resolve(link)
        tree.make_dirs(self._temp_dir, self._dir_mode)

        with tree.os_errors("create temp file", self._temp_dir):
            temp_file = tempfile.NamedTemporaryFile(  # pylint: disable=consider-using-with
                dir=self._temp_dir,
                prefix=f"{time.time_ns()}-",
                suffix=DATA_SUFFIX,
                buffering=0,
                delete=False,
            )
        try:
            with tree.os_errors("chmod temp file", temp_file.name):
                os.fchmod(temp_file.fileno(), self._file_mode)
        except StoreIOError:
            temp_file.close()
            tree.discard(temp_file.name)
            raise

        logger.debug("Staging %s for link %s", temp_file.name, link_path)
        return LocalLinkWriter(
            temp_file,
            link_path=link_path,
            link_dir=self._link_dir,
            data_dir=self._data_dir,
            dir_mode=self._dir_mode,
            fsync=fsync,
        )

    def open(self, link: str) -> BinaryIO:
        path = self._resolve(link, allow_root=True)

        try:
            return open(path, "rb")  # pylint: disable=consider-using-with
        except (FileNotFoundError, NotADirectoryError):
            if os.path.islink(path):
                with tree.os_errors("readlink", path):
                    target = os.readlink(path)
                raise BrokenLink(path, target) from None
            raise NotFound(path) from None
        except IsADirectoryError as e:
            raise NotARegularFile(path) from e
        except OSError as e:
            raise StoreIOError("open", path, e.strerror or str(e)) from e

    def rename(self, old: str, new: str) -> None:
        old_path = self._resolve(old)
        new_path = self._resolve(new)
        new_parent = os.path.dirname(new_path)

        tree.make_dirs(new_parent, self._dir_mode)
        try:
            os.rename(old_path, new_path)
        except OSError as e:
            # do not leave the freshly created destination parents behind
            _prune_after_failure(self._link_dir, new_parent)
            raise StoreIOError(
                "rename", old_path, f"to {new_path!r}: {e.strerror or e}"
            ) from e
        logger.debug("Renamed %s -> %s", old_path, new_path)

        self._prune(os.path.dirname(old_path))

    def remove(self, link: str) -> None:
        path = self._resolve(link)

        with tree.os_errors("remove", path):
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                try:
                    os.unlink(path)
                except FileNotFoundError:
                    logger.debug("Nothing to remove at %s", path)
        logger.debug("Removed %s", path)

        self._prune(os.path.dirname(path))

    def gc(
        self, *, cancel: CancelSignal | None = None, dry_run: bool = False
    ) -> list[Path]:
        # 1) collect every data file
        candidates: set[str] = set()
        for entry in tree.walk(self._data_dir, cancel, missing_ok=True):
            if entry.is_file(follow_symlinks=False):
                candidates.add(entry.path)
        logger.debug("GC collected %d data file(s)", len(candidates))

        if not candidates:
            return []

        # 2) mark whatever a link still points at
        for entry in tree.walk(self._link_dir, cancel, missing_ok=True):
            if not entry.is_symlink():
                continue
            with tree.os_errors("readlink", entry.path):
                target = os.readlink(entry.path)
            candidates.discard(_normalize_target(entry.path, target))
        logger.debug("GC found %d unreferenced data file(s)", len(candidates))

        unreferenced = sorted(candidates)
        if dry_run:
            return [Path(p) for p in unreferenced]

        # 3) sweep; the first failure stops the pass
        removed: list[Path] = []
        for data_path in unreferenced:
            check_cancelled(cancel)
            with tree.os_errors("remove", data_path):
                try:
                    os.unlink(data_path)
                except FileNotFoundError:
                    continue
            logger.debug("GC removed %s", data_path)
            removed.append(Path(data_path))

        logger.info("GC removed %d unreferenced data file(s)", len(removed))
        return removed

    # --- Internal Helpers ---

    def _resolve(self, link: str, *, allow_root: bool = False) -> str:
        """Return the absolute filesystem path for ``link``.

        The link is forced under the link root: it is made absolute against
        ``/`` and normalized before joining, so ``..`` cannot climb out.
        """
        rooted = posixpath.normpath("/" + link.lstrip("/"))
        if rooted == "/":
            if not allow_root:
                raise InvalidLinkPath(link)
            return self._link_dir
        return os.path.join(self._link_dir, *rooted[1:].split("/"))

    def _prune(self, start: str) -> None:
        removed = tree.prune_empty_dirs(self._link_dir, start)
        if removed:
            logger.debug("Pruned %d empty link dir(s) above %s", len(removed), start)


class LocalLinkWriter(AbstractLinkWriter):
    """Write handle of `LocalDedupeStore`.

    Every `write` goes straight to the (unbuffered) staging file and into the
    running SHA-512 before returning. `commit` then moves the staging file
    into the data directory and publishes the link.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        temp_file: IO[bytes],
        *,
        link_path: str,
        link_dir: str,
        data_dir: str,
        dir_mode: int,
        fsync: bool,
    ) -> None:
        self._temp_file = temp_file
        self._temp_path: str = temp_file.name
        self._link_path = link_path
        self._link_dir = link_dir
        self._data_dir = data_dir
        self._dir_mode = dir_mode
        self._fsync = fsync
        self._hasher = new_hasher()
        self._size = 0
        self._finished = False
        self._committed = False

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def temp_path(self) -> Path:
        """Path of the staging file (gone once committed or aborted)."""
        return Path(self._temp_path)

    def write(self, data: bytes) -> int:
        self._ensure_pending()

        view = memoryview(data)
        try:
            with tree.os_errors("write", self._temp_path):
                while view:
                    written = self._temp_file.write(view)
                    view = view[written:]
        except StoreIOError:
            # the staging file may hold part of data that the digest never saw
            self.abort()
            raise

        self._hasher.update(data)
        self._size += len(data)
        return len(data)

    def commit(self, *, expected_digest: str | None = None) -> BlobStat:
        self._ensure_pending()
        if expected_digest is not None and not is_valid_digest(expected_digest):
            raise ValueError(f"Invalid SHA-512 digest: {expected_digest!r}")

        try:
            self._close_temp()
            digest = self._hasher.hexdigest()
            if expected_digest is not None and expected_digest != digest:
                raise IntegrityError(expected_digest, digest)
        except BaseException:
            self.abort()
            raise

        self._finished = True
        data_path = os.path.join(self._data_dir, digest + DATA_SUFFIX)
        self._place(data_path)
        self._publish(data_path)
        self._committed = True

        logger.debug(
            "Committed %s (%d bytes) -> %s", self._link_path, self._size, data_path
        )
        return BlobStat(
            digest=digest,
            size=self._size,
            data_path=Path(data_path),
            link_path=Path(self._link_path),
        )

    def abort(self) -> None:
        if self._finished:
            return
        self._finished = True

        with tree.os_errors("close temp file", self._temp_path):
            self._temp_file.close()
        with tree.os_errors("remove temp file", self._temp_path):
            try:
                os.unlink(self._temp_path)
            except FileNotFoundError:
                pass
        logger.debug("Aborted write to %s", self._link_path)

    # --- Internal Helpers ---

    def _ensure_pending(self) -> None:
        if self._finished:
            raise ValueError("Writer is already committed or aborted")

    def _close_temp(self) -> None:
        with tree.os_errors("close temp file", self._temp_path):
            if self._fsync:
                os.fsync(self._temp_file.fileno())
            self._temp_file.close()

    def _place(self, data_path: str) -> None:
        """Atomically move the staging file to ``data_path``."""
        try:
            tree.make_dirs(self._data_dir, self._dir_mode)
            with tree.os_errors("rename temp file into data file", data_path):
                os.replace(self._temp_path, data_path)
        except StoreIOError:
            tree.discard(self._temp_path)
            raise
        if self._fsync:
            _fsync_dir(self._data_dir)

    def _publish(self, data_path: str) -> None:
        """Swap a symlink to ``data_path`` into place at the link path."""
        link_parent = os.path.dirname(self._link_path)
        try:
            tree.make_dirs(link_parent, self._dir_mode)
            tree.replace_with_symlink(data_path, self._link_path)
        except StoreIOError:
            _prune_after_failure(self._link_dir, link_parent)
            raise
        if self._fsync:
            _fsync_dir(link_parent)


def _absolute(name: str, path: str | os.PathLike[str]) -> str:
    try:
        return os.path.abspath(os.fspath(path))
    except (OSError, ValueError) as e:
        raise PathResolutionError(name, path) from e


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _prune_after_failure(root: str, start: str) -> None:
    """Prune directories created for an operation that then failed."""
    try:
        tree.prune_empty_dirs(root, start)
    except PruneError:
        logger.warning("Could not prune %s after a failed operation", start, exc_info=True)


def _normalize_target(link_path: str, target: str) -> str:
    """Lexically resolve a symlink target; relative targets are taken
    relative to the symlink's directory. The target is never followed."""
    return os.path.normpath(os.path.join(os.path.dirname(link_path), target))


def _fsync_dir(path: str) -> None:
    with tree.os_errors("fsync", path):
        fd = os.open(path, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
