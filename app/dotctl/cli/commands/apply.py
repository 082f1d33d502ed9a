"""Apply command implementation.

Converges the machine to one or more profiles: installs packages, links
dotfiles, runs hooks and regenerates the shell init script.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotctl.cli.context import get_paths, get_platform
from dotctl.cli.display import create_links_table, fail, print_plan
from dotctl.core.errors import DotctlError
from dotctl.core.loader import load_state
from dotctl.core.prompt import Prompter
from dotctl.engine.apply import ApplyEngine, ApplyOptions
from dotctl.library.manager import RecipeLibrary
from dotctl.shell.generator import ShellType
from dotctl.shell.injector import inject_source_line, rc_file, source_line
from dotctl.utils.formatting import console, print_error, print_info, print_success, print_warning


def apply(
    ctx: typer.Context,
    profiles: Annotated[
        list[str] | None,
        typer.Argument(help="Profiles to apply (default: the profiles applied last time)."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show the plan without changing anything.",
        ),
    ] = False,
    allow_risky: Annotated[
        bool,
        typer.Option(
            "--allow-risky",
            help="Run high-risk hooks (e.g. curl | sh) without asking.",
        ),
    ] = False,
    non_interactive: Annotated[
        bool,
        typer.Option(
            "--non-interactive",
            help="Never prompt; stop with exit code 4 when a decision is needed.",
        ),
    ] = False,
    skip_hooks: Annotated[
        bool,
        typer.Option(
            "--skip-hooks",
            help="Do not run apply hooks.",
        ),
    ] = False,
    hook_timeout: Annotated[
        float | None,
        typer.Option(
            "--hook-timeout",
            min=0.001,
            help="Per-hook timeout in seconds (default: hooks.timeout_seconds).",
        ),
    ] = None,
    best_effort: Annotated[
        bool,
        typer.Option(
            "--best-effort",
            help="Skip apps that cannot be found instead of failing.",
        ),
    ] = False,
    setup_shell: Annotated[
        bool,
        typer.Option(
            "--setup-shell",
            help="Add a line sourcing the init script to your shell rc file.",
        ),
    ] = False,
) -> None:
    """Apply profiles to this machine.

    Examples:
        dotctl apply base work          # Apply two profiles
        dotctl apply --dry-run base     # Preview only
        dotctl apply                    # Re-apply the last applied profiles
        dotctl apply --setup-shell base # Also source it from your rc file
    """
    paths = get_paths(ctx)
    platform = get_platform()

    names = list(profiles or [])
    if not names:
        try:
            names = load_state(paths).profile_names
        except DotctlError as e:
            raise fail(e) from e
        if not names:
            print_error("No profiles given and none have been applied yet.")
            raise typer.Exit(code=1)
        print_info(f"Re-applying profiles: {', '.join(names)}")

    engine = ApplyEngine(
        paths,
        platform,
        library=RecipeLibrary(),
        prompter=Prompter(interactive=not non_interactive),
    )
    options = ApplyOptions(
        profiles=names,
        dry_run=dry_run,
        allow_risky=allow_risky,
        non_interactive=non_interactive,
        run_hooks=not skip_hooks,
        hook_timeout=hook_timeout,
        best_effort=best_effort,
    )

    try:
        result = engine.apply(options)
    except DotctlError as e:
        raise fail(e) from e

    if result.dry_run:
        print_plan(result.plan, dry_run=True)
        print_info("Dry run: no changes made.")
        return

    if result.links:
        console.print(create_links_table(result))
    for entry in result.installed:
        print_info(f"Installed {entry}")
    for app_name in result.manual:
        print_warning(f"{app_name}: run its custom install script manually.")

    print_success(
        f"Applied {len(result.plan.bundles)} app(s) from {', '.join(names)}: "
        f"{len(result.links)} dotfile(s), {result.snapshots} snapshot(s), "
        f"{result.hooks_run} hook(s)."
    )
    if result.init_script is None:
        return
    if setup_shell:
        _setup_shell(result.init_script, result.plan.config.shell or platform.shell, platform.home)
    else:
        print_info(f"Shell init: source {result.init_script}")


def _setup_shell(init_script: Path, shell: str, home: Path) -> None:
    """Make the user's rc file source ``init_script``."""
    rc = rc_file(ShellType.parse(shell), home)
    if rc is None:
        print_warning(
            f"Cannot set up shell {shell!r}. Add this to your shell config: "
            f"{source_line(init_script, home)}"
        )
        return
    try:
        changed = inject_source_line(rc, init_script, home)
    except DotctlError as e:
        raise fail(e) from e
    if changed:
        print_success(f"Added shell integration to {rc}")
    else:
        print_info(f"{rc} already sources {init_script}")
