"""Rollback command implementation.

Reverses the most recent apply (or a given operation log), or restores a
single target from its snapshot history.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from dotctl.cli.context import expand_user_path, get_paths, get_platform
from dotctl.cli.display import fail
from dotctl.core.errors import DotctlError
from dotctl.core.loader import load_config
from dotctl.engine.history import SnapshotStore
from dotctl.engine.lock import ApplyLock
from dotctl.engine.oplog import latest_log, load_log
from dotctl.engine.rollback import (
    Rollback,
    RollbackResult,
    SnapshotCandidate,
    describe_candidate,
)
from dotctl.models.operation import OperationType
from dotctl.utils.formatting import console, print_error, print_info, print_success, print_warning


def _choose_snapshot(target: str, candidates: list[SnapshotCandidate]) -> SnapshotCandidate | None:
    """Let the user pick one of several snapshots for ``target``."""
    console.print(f"\n[header]Snapshots for {escape(target)}:[/]")
    for index, candidate in enumerate(candidates, start=1):
        console.print(f"  {index}. {escape(describe_candidate(candidate))}")
    choice = typer.prompt("Snapshot to restore (0 keeps the logged one)", default=0, type=int)
    if 1 <= choice <= len(candidates):
        return candidates[choice - 1]
    return None


def _print_result(result: RollbackResult) -> None:
    for message in result.advisories:
        print_info(message)
    for failure in result.failed:
        print_error(failure)
    summary = f"Restored {result.restored}, removed {result.removed}, failed {len(result.failed)}."
    if result.success:
        print_success(summary)
    else:
        print_warning(summary)


def rollback(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt.",
        ),
    ] = False,
    choose_snapshot: Annotated[
        bool,
        typer.Option(
            "--choose-snapshot",
            help="Pick among all historical snapshots when a target has several.",
        ),
    ] = False,
    target: Annotated[
        Path | None,
        typer.Option(
            "--target",
            help="Restore only this path from its newest snapshot.",
        ),
    ] = None,
    log: Annotated[
        Path | None,
        typer.Option(
            "--log",
            help="Operation log to roll back (default: the most recent).",
        ),
    ] = None,
) -> None:
    """Undo the most recent apply.

    Examples:
        dotctl rollback                      # Undo the last apply
        dotctl rollback --choose-snapshot    # Pick snapshots interactively
        dotctl rollback --target ~/.zshrc    # Restore one file
    """
    paths = get_paths(ctx)
    try:
        config = load_config(paths)
    except DotctlError as e:
        raise fail(e) from e

    store = SnapshotStore(paths.history_dir, config.history.max_size_bytes)
    operator = Rollback(paths, store, _choose_snapshot if choose_snapshot else None)

    if target is not None:
        path = expand_user_path(target, get_platform())
        try:
            with ApplyLock(paths.apply_lock):
                result = operator.restore_target(str(path))
        except DotctlError as e:
            raise fail(e) from e
        _print_result(result)
        if not result.success:
            raise typer.Exit(code=1)
        return

    log_path = log if log is not None else latest_log(paths.operations_dir)
    if log_path is None:
        print_info("Nothing to roll back.")
        return

    try:
        operations = load_log(log_path)
    except DotctlError as e:
        raise fail(e) from e

    links = sum(1 for op in operations if op.type == OperationType.LINK)
    console.print(f"\n[bold]Rollback: {log_path.name}[/bold]")
    console.print(f"  Operations: {len(operations)} ({links} link(s))\n")

    if not yes and not typer.confirm("Do you want to roll back these operations?"):
        print_info("Cancelled.")
        return

    try:
        with ApplyLock(paths.apply_lock):
            result = operator.rollback_log(log_path)
    except DotctlError as e:
        raise fail(e) from e

    _print_result(result)
    if not result.success:
        raise typer.Exit(code=1)
