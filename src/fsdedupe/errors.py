"""Error definitions shared by the store, the dedupe utilities and the CLI."""

from __future__ import annotations

import os

# ============================================================================
#                           General store errors
# ============================================================================


class DedupeStoreError(Exception):
    """Base class for all fsdedupe errors."""


class PathResolutionError(DedupeStoreError):
    """Raised when a configured store root cannot be made absolute."""

    def __init__(self, name: str, path: str | os.PathLike[str]) -> None:
        super().__init__(
            f"Cannot resolve absolute path for {name} root {str(path)!r}."
        )
        self.name = name
        self.path = path


class StoreIOError(DedupeStoreError):
    """A filesystem operation failed.

    Always raised ``from`` the underlying ``OSError``, which stays reachable
    through ``__cause__``.

    Attributes:
        operation (str): Short name of the failed step (e.g. ``"rename"``).
        path (str): The path the step was operating on.
    """

    def __init__(
        self, operation: str, path: str | os.PathLike[str], detail: str = ""
    ) -> None:
        message = f"{operation} {str(path)!r} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.path = os.fspath(path)


class PruneError(StoreIOError):
    """Pruning empty link directories failed after a rename/remove succeeded.

    The primary operation is not rolled back.
    """


class NotFound(DedupeStoreError):
    """Raised when no entry exists at the requested path."""

    def __init__(
        self, path: str | os.PathLike[str], message: str | None = None
    ) -> None:
        super().__init__(message or f"No such entry: {str(path)!r}")
        self.path = os.fspath(path)


class BrokenLink(NotFound):
    """Raised when a link exists but the data file it targets is gone."""

    def __init__(self, path: str | os.PathLike[str], target: str) -> None:
        super().__init__(
            path, f"Link {str(path)!r} points to missing data file {target!r}"
        )
        self.target = target


class NotARegularFile(DedupeStoreError):
    """Raised when a dedupe input is a directory, device, socket, etc."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__(f"Not a regular file: {str(path)!r}")
        self.path = os.fspath(path)


class InvalidLinkPath(DedupeStoreError, ValueError):
    """Raised when a link path resolves to the link root itself."""

    def __init__(self, link: str) -> None:
        super().__init__(f"Link path {link!r} resolves to the link root.")
        self.link = link


class IntegrityError(DedupeStoreError):
    """Raised when the computed digest does not match the expected one."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Digest mismatch: expected {expected}, got {actual}.")
        self.expected = expected
        self.actual = actual


class OperationCancelled(DedupeStoreError):
    """A walk observed its cancellation signal and stopped.

    The store is left in whatever partial state was reached; this is a
    "stopped" result, not a corruption.
    """
