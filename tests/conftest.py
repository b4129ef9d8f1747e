"""Global pytest fixtures and default marks for FSDEDUPE.

Every test gets the mark of the tier directory it lives in
(``tests/unit/`` -> ``unit``, ``tests/e2e/`` -> ``e2e``, ...) unless it
already carries that mark explicitly.
"""

from pathlib import Path

import pytest

# pylint: disable=unused-argument

pytest_plugins = [
    "tests.fixtures.trees",
]

TESTS_ROOT = Path(__file__).parent.resolve()
TIER_MARKERS = ("unit", "contract", "integration", "e2e")


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Add the tier mark matching each item's top-level test directory."""
    for item in items:
        path = item.path.resolve()  # pytest>=8: pathlib.Path
        try:
            tier = path.relative_to(TESTS_ROOT).parts[0]
        except (ValueError, IndexError):
            continue
        if tier not in TIER_MARKERS:
            continue
        if not any(marker.name == tier for marker in item.iter_markers()):
            item.add_marker(getattr(pytest.mark, tier))
