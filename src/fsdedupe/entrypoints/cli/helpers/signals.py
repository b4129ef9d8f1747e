"""Turn SIGINT/SIGTERM into a cooperative cancellation signal."""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from fsdedupe.cancellation import CancelToken

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@contextmanager
def cancel_on_signals(
    signums: tuple[signal.Signals, ...] = DEFAULT_SIGNALS,
) -> Iterator[CancelToken]:
    """Yield a `CancelToken` that is set when one of ``signums`` arrives.

    The previous handlers are restored on exit. Outside the main thread
    handlers cannot be installed; the token is still yielded but only
    cancels when set explicitly.
    """
    token = CancelToken()
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handler(signum: int, frame: object) -> None:  # pylint: disable=unused-argument
        logger.warning("Received %s, stopping", signal.Signals(signum).name)
        token.cancel()

    previous = {signum: signal.signal(signum, _handler) for signum in signums}
    try:
        yield token
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
