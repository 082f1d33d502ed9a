"""Status command implementation."""

from collections import Counter
from typing import Annotated

import typer

from dotctl.cli.context import get_paths, get_platform
from dotctl.cli.display import create_status_table, fail
from dotctl.core.errors import DotctlError
from dotctl.engine.status import LinkStatus, collect_status
from dotctl.library.manager import RecipeLibrary
from dotctl.utils.formatting import console, print_info


def status(
    ctx: typer.Context,
    profiles: Annotated[
        list[str] | None,
        typer.Argument(help="Profiles to inspect (default: the applied profiles)."),
    ] = None,
) -> None:
    """Show whether each managed dotfile is linked.

    A dotfile is [status.linked]linked[/], [status.drifted]drifted[/] (a symlink
    pointing elsewhere), [status.missing]missing[/] or an
    [status.unmanaged]unmanaged-file[/] sitting where the link should be.
    """
    paths = get_paths(ctx)
    try:
        entries = collect_status(paths, get_platform(), RecipeLibrary(), list(profiles or []))
    except DotctlError as e:
        raise fail(e) from e

    if not entries:
        print_info("No managed dotfiles. Apply a profile first.")
        return

    console.print(create_status_table(entries))
    counts = Counter(entry.status for entry in entries)
    console.print(
        ", ".join(f"{counts[state]} {state.value}" for state in LinkStatus if counts[state]),
        style="muted",
    )
