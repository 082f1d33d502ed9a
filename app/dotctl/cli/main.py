"""Main CLI application entry point.

Defines the Typer application, global options and logging setup.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from dotctl import __version__
from dotctl.cli.commands import apply, restore, rollback, status, track, validate
from dotctl.cli.context import get_paths
from dotctl.core.errors import DotctlError
from dotctl.core.loader import load_config
from dotctl.utils.formatting import apply_color_mode, err_console

logger = logging.getLogger(__name__)

# Create main Typer app
app = typer.Typer(
    name="dotctl",
    help="Declarative dotfiles and environment management.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dotctl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    repo: Annotated[
        str | None,
        typer.Option(
            "--repo",
            envvar="DOTCTL_DIR",
            help="Path to the dotctl repository (default: ~/.dotctl).",
        ),
    ] = None,
) -> None:
    """dotctl - Declarative dotfiles and environment management.

    Describe your tools as app bundles, group them into profiles and
    let dotctl install packages, link dotfiles and generate your shell
    init script.
    """
    configure_logging(verbose)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["repo"] = repo

    try:
        apply_color_mode(load_config(get_paths(ctx)).ui.color)
    except DotctlError as e:
        # Commands that need the config report the problem themselves
        logger.debug("Could not read config for color settings: %s", e)


# Register commands
app.command(name="apply")(apply.apply)
app.command(name="rollback")(rollback.rollback)
app.command(name="status")(status.status)
app.command(name="track")(track.track)
app.command(name="restore")(restore.restore)
app.command(name="validate")(validate.validate)


if __name__ == "__main__":
    app()
