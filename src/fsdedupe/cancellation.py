"""Cooperative cancellation for long filesystem walks.

Walks check their signal between filesystem entries and raise
`OperationCancelled` as soon as it is set. Anything with an ``is_set()``
method is accepted, so a plain `threading.Event` works; `CancelToken` adds an
optional deadline on top of that.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol

from fsdedupe.errors import OperationCancelled

__all__ = ["CancelSignal", "CancelToken", "check_cancelled"]


class CancelSignal(Protocol):  # pylint: disable=too-few-public-methods
    """Structural type of a cancellation signal."""

    def is_set(self) -> bool:
        """Return True once the operation should stop."""


class CancelToken:
    """A settable cancellation signal with an optional deadline.

    Args:
        timeout: Seconds from construction after which the token reports
            itself as set. ``None`` means no deadline.

    Example:
        token = CancelToken(timeout=30)
        store.gc(cancel=token)
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def is_set(self) -> bool:
        """Return True if cancelled explicitly or the deadline has passed."""
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline


def check_cancelled(cancel: CancelSignal | None) -> None:
    """Raise `OperationCancelled` if ``cancel`` is set.

    Raises:
        OperationCancelled: The signal is set.
    """
    if cancel is not None and cancel.is_set():
        raise OperationCancelled("operation cancelled")
