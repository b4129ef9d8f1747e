"""Fixtures for end-to-end CLI tests.

- ``log-demo``: a test-only subcommand that logs one message per level on
  ``fsdedupe.demo`` and on ``some.thirdparty``, then a last DEBUG message.
- ``runner``/``fs``: a Click runner and its isolated working directory.
- ``store_root``/``no_flight_recorder``: environment for store commands.
"""

import logging

import click
import pytest
from click.testing import CliRunner

from fsdedupe.entrypoints.cli.main import fsdedupe

# pylint: disable=redefined-outer-name

DEMO_LEVELS = ("debug", "info", "warning", "error", "critical")
THIRD_PARTY_LEVELS = ("debug", "info", "warning")


@click.command()
def log_demo():
    """Log a message at every level, own and third-party."""
    own = logging.getLogger("fsdedupe.demo")
    third_party = logging.getLogger("some.thirdparty")
    for level in DEMO_LEVELS:
        getattr(own, level)(f"This is a {level}-level test message.")
    for level in THIRD_PARTY_LEVELS:
        getattr(third_party, level)(f"This is a {level}-level third-party test message.")
    own.debug("This is a final debug-level test message.")


@pytest.fixture
def registered_log_demo():
    """Attach ``log-demo`` to the `fsdedupe` group for one test."""
    fsdedupe.add_command(log_demo, name="log-demo")
    try:
        yield
    finally:
        fsdedupe.commands.pop("log-demo", None)
        # click-extra keeps its own per-section command registries
        for section in [getattr(fsdedupe, "_default_section", None)] + list(
            getattr(fsdedupe, "_sections", [])
        ):
            getattr(section, "commands", {}).pop("log-demo", None)


@pytest.fixture
def runner():
    """Return a Click CliRunner for invoking CLI commands in tests."""
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside the runner's isolated filesystem."""
    with runner.isolated_filesystem():
        yield


@pytest.fixture
def store_root(tmp_path, monkeypatch):
    """A store root under ``tmp_path``, exported as FSDEDUPE_STORE_ROOT."""
    root = tmp_path / "store"
    monkeypatch.setenv("FSDEDUPE_STORE_ROOT", str(root))
    monkeypatch.delenv("FSDEDUPE_DIR_MODE", raising=False)
    return root


@pytest.fixture
def no_flight_recorder(monkeypatch):
    """Keep CLI runs from writing flight-recorder logs into the user log dir."""
    monkeypatch.setenv("FSDEDUPE_FLIGHT_RECORDER", "0")
