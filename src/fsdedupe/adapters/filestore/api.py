"""Deduplicated file store interface.

This module defines the backend-agnostic interface of a store that keeps a
user-visible namespace of *links* on top of content-addressed *data files*.
A link is a slash-separated path; the data file behind it is named by the
SHA-512 digest of its bytes, so identical content is stored once no matter
how many links point at it.

Exports
-------
Exceptions (re-exported from `fsdedupe.errors`)
    - DedupeStoreError:    Base class for store errors.
    - PathResolutionError: A configured root cannot be made absolute.
    - StoreIOError:        A filesystem step failed (tagged with step and path).
    - PruneError:          Pruning after a successful rename/remove failed.
    - NotFound:            No entry at the requested link path.
    - BrokenLink:          The link exists but its data file is gone.
    - NotARegularFile:     A dedupe input is not a regular file.
    - InvalidLinkPath:     A link path resolves to the link root.
    - IntegrityError:      Digest mismatch on commit.
    - OperationCancelled:  A walk observed its cancellation signal.

Data types
    - BlobStat: What a commit produced (`digest`, `size`, `data_path`,
      `link_path`).

Abstract interfaces
    - AbstractLinkWriter: Write handle for a single link; `write()`,
      `commit()`, `abort()`, `close()`. Usable as a context manager.
    - AbstractDedupeStore: `create()`, `open()`, `rename()`, `remove()`,
      `gc()` plus convenience helpers (`exists()`, `put_*()`, `readall()`).

Design goals
------------
- **Content addressing**: a data file is named by its digest; identical
  bytes always land on the same name.
- **Indirection**: links only ever point at data files. Namespace operations
  (`rename`, `remove`) never touch data files; reclamation is `gc()`'s job.
- **Implicit references**: no reference counts are stored. `gc()` recomputes
  reachability from the link tree on every call.
- **Atomic steps**: each individual filesystem mutation is atomic (rename
  into place, symlink swap) even though a whole `create` is not.

Typical usage
-------------
Store bytes under a link and read them back:

    with store.create("photos/2024/cat.jpg") as w:
        w.write(payload)
    with store.open("photos/2024/cat.jpg") as fp:
        data = fp.read()

Reclaim data files nobody links to anymore:

    store.remove("photos/2024/cat.jpg")
    removed = store.gc()
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, BinaryIO

from fsdedupe.errors import (
    BrokenLink,
    DedupeStoreError,
    IntegrityError,
    InvalidLinkPath,
    NotARegularFile,
    NotFound,
    OperationCancelled,
    PathResolutionError,
    PruneError,
    StoreIOError,
)
from fsdedupe.hashing import CHUNK_SIZE

if TYPE_CHECKING:
    from fsdedupe.cancellation import CancelSignal

__all__ = [
    "AbstractDedupeStore",
    "AbstractLinkWriter",
    "BlobStat",
    "BrokenLink",
    "DedupeStoreError",
    "IntegrityError",
    "InvalidLinkPath",
    "NotARegularFile",
    "NotFound",
    "OperationCancelled",
    "PathResolutionError",
    "PruneError",
    "StoreIOError",
]


@dataclass(frozen=True)
class BlobStat:
    """Outcome of a committed write.

    Attributes:
        digest: Lowercase SHA-512 hex digest of the bytes written.
        size: Number of bytes written.
        data_path: Absolute path of the data file holding the bytes.
        link_path: Absolute path of the published link.
    """

    digest: str
    size: int
    data_path: Path
    link_path: Path


class AbstractLinkWriter(abc.ABC):
    """Write handle that publishes content under a link.

    Typical lifecycle:
        1. Obtain via `AbstractDedupeStore.create`.
        2. Call `write` zero or more times.
        3. Finalize with `commit` (or `close`) *or* discard with `abort`.

    As a context manager the writer commits on a clean exit and aborts when
    the block raises.
    """

    @property
    @abc.abstractmethod
    def committed(self) -> bool:
        """Return True if the content has been published."""

    @abc.abstractmethod
    def write(self, data: bytes) -> int:
        """Append bytes to the pending content.

        The bytes reach both the staging file and the digest before this
        returns.

        Returns:
            int: Number of bytes written (always ``len(data)``).

        Raises:
            ValueError: If called after `commit()`/`abort()`/`close()`.
            StoreIOError: Underlying I/O errors. The writer is aborted, since
                the staged bytes may no longer match the digest.
        """

    @abc.abstractmethod
    def commit(self, *, expected_digest: str | None = None) -> BlobStat:
        """Place the content into the store and publish the link.

        Args:
            expected_digest: Optional guard; lowercase SHA-512 hex digest the
                content must have.

        Returns:
            BlobStat: Digest, size and the data/link paths.

        Raises:
            ValueError: If already finished, or ``expected_digest`` is malformed.
            IntegrityError: If ``expected_digest`` does not match. Nothing is
                placed and the staged bytes are discarded.
            StoreIOError: Underlying I/O errors.
        """

    @abc.abstractmethod
    def abort(self) -> None:
        """Discard staged content. Idempotent; a no-op after `commit()`."""

    def close(self) -> BlobStat | None:
        """Commit the pending content if it is still pending.

        Returns:
            The `BlobStat` of the commit, or None if the writer was already
            committed or aborted.
        """
        if self.finished:
            return None
        return self.commit()

    @property
    @abc.abstractmethod
    def finished(self) -> bool:
        """Return True once the writer was committed or aborted."""

    def __enter__(self) -> AbstractLinkWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.abort()
            return
        self.close()


class AbstractDedupeStore(abc.ABC):
    """Link namespace over content-addressed data files."""

    @abc.abstractmethod
    def create(self, link: str, *, fsync: bool = False) -> AbstractLinkWriter:
        """Return a write handle that will publish its content at ``link``.

        An existing link at that path is replaced when the writer commits.

        Args:
            link: Link path; always interpreted relative to the link root.
            fsync: If True, make the placement durable on commit.

        Raises:
            InvalidLinkPath: ``link`` resolves to the link root.
            StoreIOError: The staging file could not be created.
        """

    @abc.abstractmethod
    def open(self, link: str) -> BinaryIO:
        """Open the content behind ``link`` for reading, at offset 0.

        Raises:
            NotFound: No entry exists at ``link``.
            BrokenLink: The link's data file no longer exists.
            StoreIOError: Underlying I/O errors.
        """

    @abc.abstractmethod
    def rename(self, old: str, new: str) -> None:
        """Move the entry at ``old`` to ``new``, then prune ``old``'s parents.

        Raises:
            InvalidLinkPath: Either path resolves to the link root.
            StoreIOError: The rename itself failed.
            PruneError: The rename succeeded but pruning failed.
        """

    @abc.abstractmethod
    def remove(self, link: str) -> None:
        """Delete the entry (or subtree) at ``link``, then prune its parents.

        Data files are left in place; see `gc`.

        Raises:
            InvalidLinkPath: ``link`` resolves to the link root.
            StoreIOError: The removal failed.
            PruneError: The removal succeeded but pruning failed.
        """

    @abc.abstractmethod
    def gc(
        self, *, cancel: CancelSignal | None = None, dry_run: bool = False
    ) -> list[Path]:
        """Delete every data file that no link references.

        Args:
            cancel: Checked between filesystem entries during the walks.
            dry_run: Only report what would be deleted.

        Returns:
            The data files deleted (or that would be, for a dry run).

        Raises:
            OperationCancelled: ``cancel`` was set during a walk.
            StoreIOError: A walk or a deletion failed; the pass stops there.
        """

    # --- Convenience methods (non-abstract) ---

    def exists(self, link: str) -> bool:
        """Return True if ``link`` resolves to readable content."""
        try:
            with self.open(link):
                return True
        except (NotFound, NotARegularFile):
            return False

    def put_path(  # pylint: disable=too-many-arguments
        self,
        link: str,
        src: str | Path,
        *,
        fsync: bool = False,
        expected_digest: str | None = None,
        chunk_size: int = CHUNK_SIZE,
        follow_symlinks: bool = False,
    ) -> BlobStat:
        """Stream a local file into the store under ``link``.

        Args:
            link: Destination link path.
            src: Path to a local file to ingest.
            fsync: If True, request durability on commit.
            expected_digest: Optional digest guard verified on commit.
            chunk_size: Read size per iteration (bytes).
            follow_symlinks: If False (default), refuse symlinks.

        Raises:
            FileNotFoundError: If `src` does not exist.
            IsADirectoryError: If `src` is a directory.
            ValueError: If `src` is a symlink and `follow_symlinks=False`.
            IntegrityError: If `expected_digest` mismatches.
        """
        src_path = Path(src)

        if not follow_symlinks and src_path.is_symlink():
            raise ValueError(f"Refusing symlink: {src_path}")

        if not src_path.is_file():
            # Maintain clear diagnostics: distinguish missing vs directory.
            if not src_path.exists():
                raise FileNotFoundError(src_path)
            raise IsADirectoryError(src_path)

        with self.create(link, fsync=fsync) as w, src_path.open("rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                w.write(chunk)
            return w.commit(expected_digest=expected_digest)

    def put_bytes(
        self,
        link: str,
        data: bytes,
        *,
        fsync: bool = False,
        expected_digest: str | None = None,
    ) -> BlobStat:
        """Store an in-memory byte string under ``link``."""
        with self.create(link, fsync=fsync) as w:
            if data:
                w.write(data)
            return w.commit(expected_digest=expected_digest)

    def put_stream(  # pylint: disable=too-many-arguments
        self,
        link: str,
        stream: BinaryIO,
        *,
        fsync: bool = False,
        expected_digest: str | None = None,
        chunk_size: int = CHUNK_SIZE,
    ) -> BlobStat:
        """Store an already-open binary stream under ``link``.

        The stream is consumed until EOF and is **not** closed by this method.
        """
        with self.create(link, fsync=fsync) as w:
            for chunk in iter(lambda: stream.read(chunk_size), b""):
                w.write(chunk)
            return w.commit(expected_digest=expected_digest)

    def readall(self, link: str) -> bytes:
        """Read the entire content behind ``link`` into memory."""
        with self.open(link) as fp:
            return fp.read()
