"""Content hashing shared by the store and the dedupe utilities."""

from __future__ import annotations

import hashlib
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hashlib import _Hash

HASH_ALGORITHM = "sha512"
DIGEST_LENGTH = 128  # hex characters of a SHA-512 digest
CHUNK_SIZE = 1024 * 1024


def new_hasher() -> "_Hash":
    """Return a fresh hash accumulator for the store's algorithm."""
    return hashlib.new(HASH_ALGORITHM)


def hash_file(path: str | os.PathLike[str], chunk_size: int = CHUNK_SIZE) -> str:
    """Return the lowercase hex digest of the file at ``path``.

    The file is streamed in ``chunk_size`` pieces; symlinks are followed.

    Raises:
        OSError: The file cannot be opened or read.
    """
    hasher = new_hasher()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def is_valid_digest(digest: str) -> bool:
    """Return True if ``digest`` looks like a lowercase SHA-512 hex digest."""
    if len(digest) != DIGEST_LENGTH:
        return False
    return all(c in "0123456789abcdef" for c in digest)
