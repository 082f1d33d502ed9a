"""Track command implementation."""

from pathlib import Path
from typing import Annotated

import typer

from dotctl.cli.context import expand_user_path, get_paths, get_platform
from dotctl.cli.display import fail
from dotctl.core.errors import DotctlError
from dotctl.engine.track import track as track_path
from dotctl.library.manager import RecipeLibrary
from dotctl.utils.formatting import print_info, print_success, print_warning


def track(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="File or directory under your home to track.")],
    app_name: Annotated[
        str,
        typer.Option(
            "--app",
            "-a",
            help="App bundle that will own the file.",
        ),
    ],
    secret: Annotated[
        bool,
        typer.Option(
            "--secret",
            help="Keep the file out of git (adds it to .gitignore).",
        ),
    ] = False,
) -> None:
    """Move a file into the repository and link it back.

    Examples:
        dotctl track ~/.gitconfig --app git
        dotctl track ~/.aws/credentials --app aws --secret
    """
    paths = get_paths(ctx)
    platform = get_platform()
    try:
        result = track_path(
            paths,
            platform,
            expand_user_path(path, platform),
            app_name,
            secret=secret,
            library=RecipeLibrary(),
        )
    except DotctlError as e:
        raise fail(e) from e

    if result.bundle_created:
        print_info(f"Created apps/{result.app}.yaml")
    if secret:
        print_warning(f"dotfiles/{result.source} is secret and was added to .gitignore.")
    print_success(f"Tracking {result.target} as {result.source}")
