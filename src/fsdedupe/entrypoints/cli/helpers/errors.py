"""Report fsdedupe errors on stderr and exit with status 1."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import click

from fsdedupe.errors import DedupeStoreError, OperationCancelled, PruneError

from .messages import error, warn

CANCELLED_MSG = (
    "Interrupted. Work done before the interruption is kept; "
    "run the command again to finish."
)


@contextmanager
def store_errors() -> Iterator[None]:
    """Turn fsdedupe errors raised in the block into a failed exit.

    The error is shown as a red line (cancellation as a yellow one) and the
    command exits with status 1. Other exceptions pass through untouched.
    """
    try:
        yield
    except OperationCancelled as e:
        warn(CANCELLED_MSG)
        raise click.exceptions.Exit(1) from e
    except PruneError as e:
        error(f"The operation succeeded, but empty directories were left behind: {e}")
        raise click.exceptions.Exit(1) from e
    except DedupeStoreError as e:
        error(str(e))
        raise click.exceptions.Exit(1) from e
