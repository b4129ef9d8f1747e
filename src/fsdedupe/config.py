"""Configuration utilities for FSDEDUPE.

This module centralizes small helpers and constants related to application
configuration: where the store lives and how its directories are created.
"""

import os
from pathlib import Path

from fsdedupe.adapters.filestore.local import DEFAULT_DIR_MODE, LocalDedupeStore

STORE_ROOT_ENV = "FSDEDUPE_STORE_ROOT"  # pragma: no mutate
DIR_MODE_ENV = "FSDEDUPE_DIR_MODE"  # pragma: no mutate

TEMP_DIR_NAME = "temp"  # pragma: no mutate
DATA_DIR_NAME = "data"  # pragma: no mutate
LINK_DIR_NAME = "link"  # pragma: no mutate


class StoreRootNotSetError(Exception):
    """Raised when the FSDEDUPE_STORE_ROOT environment variable is not set."""


class InvalidDirModeError(ValueError):
    """Raised when a directory mode is not an octal permission string."""


def get_store_root() -> Path:
    """Get the store root from the environment.

    Returns:
        The value of the `FSDEDUPE_STORE_ROOT` environment variable.

    Raises:
        StoreRootNotSetError: If `FSDEDUPE_STORE_ROOT` is not set.
    """
    if not (root := os.environ.get(STORE_ROOT_ENV)):
        raise StoreRootNotSetError
    return Path(root)


def parse_dir_mode(value: str | int | None) -> int:
    """Parse a directory permission mode.

    Strings are read as octal (``"0750"``, ``"750"`` and ``"0o750"`` are all
    accepted); integers are taken as-is. ``None``, ``""`` and ``0`` select
    the default ``0o700``.

    Raises:
        InvalidDirModeError: If the value is not a valid permission mode.
    """
    if value is None or value == "":
        return DEFAULT_DIR_MODE
    if isinstance(value, int):
        mode = value
    else:
        text = value.strip().lower().removeprefix("0o")
        try:
            mode = int(text, 8)
        except ValueError as e:
            raise InvalidDirModeError(f"Invalid directory mode: {value!r}") from e
    if not 0 <= mode <= 0o7777:
        raise InvalidDirModeError(f"Directory mode out of range: {value!r}")
    return mode or DEFAULT_DIR_MODE


def get_dir_mode() -> int:
    """Get the directory mode from `FSDEDUPE_DIR_MODE` (default ``0o700``)."""
    return parse_dir_mode(os.environ.get(DIR_MODE_ENV))


def build_store(root: str | os.PathLike[str], dir_mode: int = 0) -> LocalDedupeStore:
    """Build a `LocalDedupeStore` using the standard layout under ``root``.

    Layout: ``<root>/temp``, ``<root>/data`` and ``<root>/link``.

    Args:
        root: Store root; relative paths are resolved against the current
            working directory when the store is built.
        dir_mode: Permission bits for created directories (``0`` = ``0o700``).

    Returns:
        A ready store. No directories are created yet.
    """
    base = Path(root)
    return LocalDedupeStore(
        temp_dir=base / TEMP_DIR_NAME,
        data_dir=base / DATA_DIR_NAME,
        link_dir=base / LINK_DIR_NAME,
        dir_mode=dir_mode,
    )
