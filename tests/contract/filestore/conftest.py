"""Pytest fixtures for dedupe store contract tests.

Provided fixtures
-----------------
- **store**: Parametrized backend factory that returns a **fresh**
  `AbstractDedupeStore` per test. Currently supports `"local"` (the
  filesystem implementation, rooted in ``tmp_path``). To exercise another
  backend, add its key to `params` and branch in the fixture body.

- **arbitrary_bytes**: Small, deterministic byte sample for quick
  round-trips.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from fsdedupe.adapters.filestore import LocalDedupeStore

if TYPE_CHECKING:
    from pathlib import Path

    from fsdedupe.adapters.filestore import AbstractDedupeStore


@pytest.fixture(params=["local"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> AbstractDedupeStore:
    """Return a fresh store instance for the requested backend."""

    match request.param:
        case "local":
            base = tmp_path / "store"
            return LocalDedupeStore(base / "temp", base / "data", base / "link")
        case _:
            raise ValueError(f"unknown store type: {request.param}")


@pytest.fixture
def arbitrary_bytes() -> bytes:
    """Deterministic sample payload for quick round-trip tests."""
    return b"The quick brown fox jumps over the lazy dog"
