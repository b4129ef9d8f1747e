"""Terminal message helpers for the fsdedupe CLI.

Every helper writes to **stderr**, so stdout stays reserved for data
(`fsdedupe store cat` output, digests printed by `fsdedupe store put`, paths
listed by `fsdedupe store gc`). Status lines carry a glyph that falls back to
ASCII when stderr cannot encode the emoji.
"""

import click

# kind -> (emoji, ASCII fallback, color)
_STYLES = {
    "warn": ("⚠️", "[!]", "yellow"),
    "success": ("✅", "[OK]", "green"),
    "error": ("❌", "[X]", "red"),
}


def _supports_character(character: str) -> bool:
    """Return True if *character* can be encoded on stderr."""
    stream = click.get_text_stream("stderr")  # pragma: no mutate
    encoding = getattr(stream, "encoding", None) or "ascii"
    try:
        character.encode(encoding)
    except UnicodeEncodeError:
        return False
    return True


def glyph(kind: str) -> str:
    """Return the status marker for *kind* ("warn", "success" or "error").

    Returns the emoji when stderr can encode it, the ASCII fallback otherwise.

    Raises:
        KeyError: Unknown *kind*.
    """
    emoji, fallback, _ = _STYLES[kind]
    return emoji if _supports_character(emoji) else fallback


def _status(kind: str, msg: str) -> None:
    _, _, color = _STYLES[kind]
    click.secho(f"{glyph(kind)}  {msg}", fg=color, bold=True, err=True)


def warn(msg: str) -> None:
    """Emit a yellow warning line, e.g. ``⚠️  Pruning empty link directories failed.``"""
    _status("warn", msg)


def success(msg: str) -> None:
    """Emit a green success line, e.g. ``✅  Replaced 3 of 10 file(s) with symlinks.``"""
    _status("success", msg)


def error(msg: str) -> None:
    """Emit a red error line, e.g. ``❌  Store root is not set.``"""
    _status("error", msg)


def action(line: str) -> None:
    """Emit one plain, unstyled line of a verbose action log."""
    click.echo(line, err=True)
