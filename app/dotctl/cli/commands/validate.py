"""Validate command implementation."""

import typer

from dotctl.cli.context import get_paths, get_platform
from dotctl.core.errors import ExitCode
from dotctl.engine.validate import validate_repo
from dotctl.library.manager import RecipeLibrary
from dotctl.utils.formatting import console, create_table, print_success


def validate(ctx: typer.Context) -> None:
    """Check every bundle, profile and condition in the repository.

    Exits with code 2 when issues are found.
    """
    paths = get_paths(ctx)
    issues = validate_repo(paths, get_platform(), RecipeLibrary())

    if not issues:
        print_success(f"Repository {paths.root} is valid.")
        return

    table = create_table(f"{len(issues)} Issue(s)", "Subject", "Problem")
    for issue in issues:
        table.add_row(issue.subject, f"[error]{issue.message}[/]")
    console.print(table)
    raise typer.Exit(code=int(ExitCode.HEALTH_ISSUES))
