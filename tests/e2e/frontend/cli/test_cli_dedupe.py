"""End-to-end CLI tests for `fsdedupe dir-symlink` and `fsdedupe symlink`."""

import os

import pytest

from fsdedupe.entrypoints.cli.main import fsdedupe

pytestmark = [pytest.mark.usefixtures("no_flight_recorder")]

# pylint: disable=magic-value-comparison


# ===========================================================================
#                               dir-symlink
# ===========================================================================


def test_dir_symlink_replaces_duplicates(runner, tmp_path, make_tree):
    """Duplicates under DIR become symlinks; a summary goes to stderr."""
    files = make_tree(tmp_path, {"a.txt": b"same", "b.txt": b"same", "c.txt": b"x"})

    result = runner.invoke(fsdedupe, ["dir-symlink", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert files["b.txt"].is_symlink()
    assert os.readlink(files["b.txt"]) == str(files["a.txt"])
    assert "Replaced 1 of 3 file(s) with symlinks." in result.output
    assert "symlink " not in result.output


def test_dir_symlink_verbose_logs_actions(runner, tmp_path, make_tree):
    """`-v` reports every replacement."""
    files = make_tree(tmp_path, {"a": b"same", "b": b"same"})

    result = runner.invoke(fsdedupe, ["dir-symlink", "-v", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert f"symlink {files['b']} -> {files['a']}" in result.output


def test_dir_symlink_defaults_to_current_directory(runner, tmp_path, make_tree, monkeypatch):
    """Without DIR the current directory is scanned."""
    files = make_tree(tmp_path, {"one": b"dup", "two": b"dup"})
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(fsdedupe, ["dir-symlink"])

    assert result.exit_code == 0, result.output
    assert files["two"].is_symlink()
    assert os.readlink(files["two"]) == str(files["one"])


def test_dir_symlink_rejects_two_directories(runner, tmp_path):
    """More than one DIR is a usage error."""
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()

    result = runner.invoke(
        fsdedupe, ["dir-symlink", str(tmp_path / "a"), str(tmp_path / "b")]
    )

    assert result.exit_code == 2
    assert "Only one directory path is expected" in result.output


def test_dir_symlink_missing_directory(runner, tmp_path):
    """A DIR that does not exist is a usage error."""
    result = runner.invoke(fsdedupe, ["dir-symlink", str(tmp_path / "missing")])
    assert result.exit_code == 2


def test_dir_symlink_rejects_file(runner, tmp_path):
    """DIR must be a directory."""
    (tmp_path / "f").write_bytes(b"")
    result = runner.invoke(fsdedupe, ["dir-symlink", str(tmp_path / "f")])
    assert result.exit_code == 2


# ===========================================================================
#                                 symlink
# ===========================================================================


def test_symlink_reads_paths_from_stdin(runner, tmp_path, make_tree):
    """Paths listed on stdin are deduplicated in order."""
    files = make_tree(tmp_path, {"p": b"dup", "q": b"dup", "r": b"solo"})
    listing = "\n".join(str(files[n]) for n in ("p", "q", "r")) + "\n\n"

    result = runner.invoke(fsdedupe, ["symlink", "-v"], input=listing)

    assert result.exit_code == 0, result.output
    assert os.readlink(files["q"]) == str(files["p"])
    assert not files["r"].is_symlink()
    assert f"symlink {files['q']} -> {files['p']}" in result.output
    assert "Replaced 1 of 3 file(s) with symlinks." in result.output


def test_symlink_reads_paths_from_file(runner, tmp_path, make_tree):
    """FILE can be given instead of stdin."""
    files = make_tree(tmp_path, {"d/1": b"dup", "d/2": b"dup"})
    listing = tmp_path / "list.txt"
    listing.write_text(f"{files['d/1']}\n{files['d/2']}\n", encoding="utf-8")

    result = runner.invoke(fsdedupe, ["symlink", str(listing)])

    assert result.exit_code == 0, result.output
    assert files["d/2"].is_symlink()


def test_symlink_missing_path_fails(runner, tmp_path):
    """A listed path that does not exist exits with status 1."""
    result = runner.invoke(fsdedupe, ["symlink"], input=f"{tmp_path / 'ghost'}\n")

    assert result.exit_code == 1
    assert "No such entry" in result.output


def test_symlink_directory_fails(runner, tmp_path):
    """A listed directory exits with status 1."""
    result = runner.invoke(fsdedupe, ["symlink"], input=f"{tmp_path}\n")

    assert result.exit_code == 1
    assert "Not a regular file" in result.output


def test_symlink_empty_input(runner):
    """Empty input is a successful no-op."""
    result = runner.invoke(fsdedupe, ["symlink"], input="")

    assert result.exit_code == 0
    assert "Replaced 0 of 0 file(s) with symlinks." in result.output
