"""FSDEDUPE store commands.

Thin wrappers over `LocalDedupeStore` rooted at ``--root`` (or
``FSDEDUPE_STORE_ROOT``), using the standard ``temp``/``data``/``link``
layout below it.

Behavior
- Data goes to **stdout** (`cat` content, the digest printed by `put`, the
  paths listed by `gc`); status lines go to **stderr**.
- Store failures exit with status 1 and a one-line message; bad arguments
  exit with status 2.

Examples
    $ export FSDEDUPE_STORE_ROOT=~/.local/share/fsdedupe
    $ fsdedupe store put photos/cat.jpg ./cat.jpg
    $ fsdedupe store mv photos/cat.jpg pets/cat.jpg
    $ fsdedupe store rm pets/cat.jpg
    $ fsdedupe store gc --dry-run
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import click
import click_extra as clickx

from fsdedupe import config
from fsdedupe.adapters.filestore import AbstractDedupeStore

from .helpers import cancel_on_signals, store_errors, success

logger = logging.getLogger(__name__)

MISSING_STORE_ROOT_MSG = (
    f"{config.STORE_ROOT_ENV} is not set.\n\n"
    "Pass --root, or set it before running this command, e.g.:\n"
    f"  export {config.STORE_ROOT_ENV}=~/.local/share/fsdedupe"
)


def _dir_mode_option(
    ctx: click.Context,  # pylint: disable=unused-argument
    param: click.Parameter,  # pylint: disable=unused-argument
    value: str | None,
) -> int | None:
    if value is None:
        return None
    try:
        return config.parse_dir_mode(value)
    except config.InvalidDirModeError as e:
        raise click.BadParameter(str(e)) from e


@click.group(cls=clickx.ExtraGroup)
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    help=f"Store root directory. [env var: {config.STORE_ROOT_ENV}]",
)
@click.option(
    "--dir-mode",
    callback=_dir_mode_option,
    help=(
        "Octal permission bits for directories the store creates (default 0700). "
        f"[env var: {config.DIR_MODE_ENV}]"
    ),
)
@click.pass_context
def store(ctx: click.Context, root: Path | None, dir_mode: int | None) -> None:
    """Deduplicated store commands."""
    if root is None:
        try:
            root = config.get_store_root()
        except config.StoreRootNotSetError as e:
            raise click.ClickException(MISSING_STORE_ROOT_MSG) from e
    if dir_mode is None:
        try:
            dir_mode = config.get_dir_mode()
        except config.InvalidDirModeError as e:
            raise click.BadParameter(str(e), param_hint=config.DIR_MODE_ENV) from e

    with store_errors():
        ctx.obj = config.build_store(root, dir_mode)
    logger.debug("Using %r", ctx.obj)


@store.command()
@click.option("--fsync", is_flag=True, help="Flush data and directories to disk.")
@click.option(
    "--expected-digest",
    metavar="SHA512",
    help="Refuse to publish unless the content has this SHA-512 hex digest.",
)
@click.argument("link")
@click.argument("src", default="-", type=click.Path(dir_okay=False, allow_dash=True))
@click.pass_obj
def put(
    dedupe_store: AbstractDedupeStore,
    fsync: bool,
    expected_digest: str | None,
    link: str,
    src: str,
) -> None:
    """Store SRC (default: stdin) under LINK and print its digest."""
    if expected_digest is not None:
        expected_digest = expected_digest.strip().lower()

    try:
        with store_errors():
            if src == "-":
                stat = dedupe_store.put_stream(
                    link,
                    click.get_binary_stream("stdin"),
                    fsync=fsync,
                    expected_digest=expected_digest,
                )
            else:
                stat = dedupe_store.put_path(
                    link,
                    src,
                    fsync=fsync,
                    expected_digest=expected_digest,
                    follow_symlinks=True,
                )
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(stat.digest)
    success(f"Stored {link} ({stat.size} bytes).")


@store.command()
@click.argument("link")
@click.pass_obj
def cat(dedupe_store: AbstractDedupeStore, link: str) -> None:
    """Write the content behind LINK to stdout."""
    out = click.get_binary_stream("stdout")
    with store_errors(), dedupe_store.open(link) as fp:
        shutil.copyfileobj(fp, out)
    out.flush()


@store.command()
@click.argument("old")
@click.argument("new")
@click.pass_obj
def mv(dedupe_store: AbstractDedupeStore, old: str, new: str) -> None:
    """Move the link (or link directory) OLD to NEW."""
    with store_errors():
        dedupe_store.rename(old, new)
    success(f"Moved {old} -> {new}.")


@store.command()
@click.argument("link")
@click.pass_obj
def rm(dedupe_store: AbstractDedupeStore, link: str) -> None:
    """Remove the link (or link directory) LINK. Data is kept until `gc`."""
    with store_errors():
        dedupe_store.remove(link)
    success(f"Removed {link}.")


@store.command()
@click.option(
    "--dry-run", is_flag=True, help="List unreferenced data files without deleting."
)
@click.pass_obj
def gc(dedupe_store: AbstractDedupeStore, dry_run: bool) -> None:
    """Delete data files that no link points to, listing each one."""
    with cancel_on_signals() as token, store_errors():
        paths = dedupe_store.gc(cancel=token, dry_run=dry_run)

    for path in paths:
        click.echo(str(path))
    verb = "Would remove" if dry_run else "Removed"
    success(f"{verb} {len(paths)} unreferenced data file(s).")
