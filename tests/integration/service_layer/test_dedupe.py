"""Integration tests for in-place symlink deduplication.

Both entry points are exercised against real trees under ``tmp_path``:
`dedupe_dir_symlink` (directory scan) and `dedupe_symlink` (path list).
"""

from __future__ import annotations

import io
import os
from pathlib import Path

import pytest

from fsdedupe.cancellation import CancelToken
from fsdedupe.errors import NotARegularFile, NotFound, OperationCancelled, StoreIOError
from fsdedupe.service_layer.dedupe import (
    DedupeSummary,
    dedupe_dir_symlink,
    dedupe_symlink,
    lines,
)

# pylint: disable=magic-value-comparison

# ===========================================================================
#                           dedupe_dir_symlink
# ===========================================================================


def test_dir_duplicates_become_symlinks_to_first(tmp_path: Path, make_tree):
    """The first file in name order stays; later copies point at it."""
    files = make_tree(
        tmp_path,
        {"a/x.txt": b"same", "b/y.txt": b"same", "b/z.txt": b"same", "c.txt": b"other"},
    )

    summary = dedupe_dir_symlink(tmp_path)

    assert summary == DedupeSummary(scanned=4, replaced=2)
    assert not files["a/x.txt"].is_symlink()
    for rel in ("b/y.txt", "b/z.txt"):
        assert files[rel].is_symlink()
        assert os.readlink(files[rel]) == str(files["a/x.txt"])
        assert files[rel].read_bytes() == b"same"
    assert not files["c.txt"].is_symlink()


def test_dir_symlink_targets_are_absolute(tmp_path: Path, make_tree, monkeypatch):
    """A relative root still yields absolute symlink targets."""
    make_tree(tmp_path, {"d/1": b"dup", "d/2": b"dup"})
    monkeypatch.chdir(tmp_path)

    dedupe_dir_symlink("d")

    target = os.readlink(tmp_path / "d" / "2")
    assert os.path.isabs(target)
    assert target == str(tmp_path / "d" / "1")


def test_dir_hidden_entries_are_left_alone(tmp_path: Path, make_tree):
    """Dot-files and dot-directories are neither hashed nor replaced."""
    files = make_tree(
        tmp_path,
        {"a": b"same", ".b": b"same", ".dir/c": b"same", "d": b"same"},
    )

    summary = dedupe_dir_symlink(tmp_path)

    assert summary == DedupeSummary(scanned=2, replaced=1)
    assert not files[".b"].is_symlink()
    assert not files[".dir/c"].is_symlink()
    assert files["d"].is_symlink()


def test_dir_existing_symlinks_are_skipped(tmp_path: Path, make_tree):
    """Symlinks are not inputs, so a second run changes nothing."""
    make_tree(tmp_path, {"a": b"same", "b": b"same"})

    first = dedupe_dir_symlink(tmp_path)
    second = dedupe_dir_symlink(tmp_path)

    assert first == DedupeSummary(scanned=2, replaced=1)
    assert second == DedupeSummary(scanned=1, replaced=0)


def test_dir_action_log(tmp_path: Path, make_tree):
    """Each replacement is reported once to the action logger."""
    files = make_tree(tmp_path, {"a": b"same", "b": b"same", "c": b"unique"})
    logged: list[str] = []

    dedupe_dir_symlink(tmp_path, log=logged.append)

    assert logged == [f"symlink {files['b']} -> {files['a']}"]


def test_dir_empty_directory(tmp_path: Path):
    """An empty directory is a no-op."""
    assert dedupe_dir_symlink(tmp_path) == DedupeSummary()


def test_dir_missing_root(tmp_path: Path):
    """A missing root is a `StoreIOError`."""
    with pytest.raises(StoreIOError):
        dedupe_dir_symlink(tmp_path / "missing")


def test_dir_cancelled(tmp_path: Path, make_tree):
    """A cancelled token stops the scan before anything is replaced."""
    files = make_tree(tmp_path, {"a": b"same", "b": b"same"})
    token = CancelToken()
    token.cancel()

    with pytest.raises(OperationCancelled):
        dedupe_dir_symlink(tmp_path, cancel=token)
    assert not files["b"].is_symlink()


# ===========================================================================
#                             dedupe_symlink
# ===========================================================================


def test_paths_duplicates_become_symlinks(tmp_path: Path, make_tree):
    """Later paths with seen content point at the first one."""
    files = make_tree(tmp_path, {"one": b"dup", "two": b"dup", "three": b"solo"})
    paths = [str(files[name]) for name in ("two", "one", "three")]

    summary = dedupe_symlink(paths)

    assert summary == DedupeSummary(scanned=3, replaced=1)
    assert os.readlink(files["one"]) == str(files["two"])
    assert not files["two"].is_symlink()


def test_paths_relative_inputs_get_absolute_targets(tmp_path: Path, make_tree, monkeypatch):
    """Targets are absolute even when the inputs are relative."""
    make_tree(tmp_path, {"x": b"dup", "y": b"dup"})
    monkeypatch.chdir(tmp_path)

    dedupe_symlink(["x", "y"])

    assert os.readlink(tmp_path / "y") == str(tmp_path / "x")


def test_paths_same_file_twice_is_left_alone(tmp_path: Path, make_tree, monkeypatch):
    """Listing a file twice (under two spellings) does not replace it."""
    files = make_tree(tmp_path, {"f": b"content"})
    monkeypatch.chdir(tmp_path)

    summary = dedupe_symlink([str(files["f"]), "./f"])

    assert summary == DedupeSummary(scanned=2, replaced=0)
    assert not files["f"].is_symlink()


def test_paths_missing_input(tmp_path: Path):
    """A path that does not exist raises `NotFound`."""
    with pytest.raises(NotFound):
        dedupe_symlink([str(tmp_path / "ghost")])


def test_paths_directory_input(tmp_path: Path):
    """A directory is not a valid input."""
    with pytest.raises(NotARegularFile):
        dedupe_symlink([str(tmp_path)])


def test_paths_from_stream(tmp_path: Path, make_tree):
    """`lines()` feeds a newline-separated list, blank lines ignored."""
    files = make_tree(tmp_path, {"p": b"dup", "q": b"dup"})
    stream = io.StringIO(f"\n{files['p']}\n\n  {files['q']}  \n")
    logged: list[str] = []

    summary = dedupe_symlink(lines(stream), log=logged.append)

    assert summary.replaced == 1
    assert logged == [f"symlink {files['q']} -> {files['p']}"]


def test_paths_cancelled(tmp_path: Path, make_tree):
    """A cancelled token stops before the first path."""
    files = make_tree(tmp_path, {"a": b"same", "b": b"same"})
    token = CancelToken()
    token.cancel()

    with pytest.raises(OperationCancelled):
        dedupe_symlink([str(files["a"]), str(files["b"])], cancel=token)
    assert not files["b"].is_symlink()
