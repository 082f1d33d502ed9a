"""Restore command implementation.

The way out: replaces every managed symlink with a real copy and exports
the aliases to a standalone file.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from dotctl.cli.context import expand_user_path, get_paths, get_platform
from dotctl.cli.display import fail
from dotctl.core.errors import DotctlError
from dotctl.engine.restore import DEFAULT_ALIASES_FILE, restore_all
from dotctl.utils.formatting import console, print_error, print_info, print_success


def restore(
    ctx: typer.Context,
    aliases_file: Annotated[
        Path,
        typer.Option(
            "--aliases-file",
            help="Where to export aliases.",
        ),
    ] = Path(DEFAULT_ALIASES_FILE),
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompts.",
        ),
    ] = False,
) -> None:
    """Replace managed symlinks with real files and export aliases."""
    paths = get_paths(ctx)
    platform = get_platform()
    destination = expand_user_path(aliases_file, platform)

    if not yes:
        console.print(
            "[warning]This replaces every managed symlink with a copy of its file "
            f"and writes your aliases to {escape(str(destination))}.[/]"
        )
        if not typer.confirm("Do you want to continue?"):
            print_info("Cancelled.")
            return
        if destination.exists() and not typer.confirm(f"{destination} exists. Overwrite?"):
            print_info("Cancelled.")
            return

    try:
        result = restore_all(paths, platform, destination)
    except DotctlError as e:
        raise fail(e) from e

    for failure in result.failed:
        print_error(failure)
    print_success(f"Restored {len(result.restored)} file(s).")
    if result.aliases_file is not None:
        print_info(f"Aliases exported to {result.aliases_file}")
    if result.rc_file is not None:
        print_info(f"{result.rc_file} now sources the aliases instead of the init script")
    if result.failed:
        raise typer.Exit(code=1)
