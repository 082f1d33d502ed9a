"""Shared Rich display functions for CLI commands.

Table builders for plans, link outcomes and status, plus the single
place where a DotctlError is turned into terminal output and an exit code.
"""

import typer
from rich.markup import escape
from rich.table import Table

from dotctl.core.errors import DotctlError, exit_code_for
from dotctl.engine.apply import ApplyPlan, ApplyResult
from dotctl.engine.linker import LinkAction
from dotctl.engine.status import DotfileStatus
from dotctl.utils.formatting import (
    console,
    create_table,
    err_console,
    format_link_status,
)


def fail(error: DotctlError) -> typer.Exit:
    """Print ``error`` (with its hint) and build the matching exit.

    Usage: ``raise fail(e) from e``.
    """
    message = f"[error]Error:[/] {escape(error.message)}"
    if error.subject and error.subject not in error.message:
        message += f" [muted]({escape(error.subject)})[/]"
    err_console.print(message)
    if error.hint:
        err_console.print(f"  [muted]Hint: {escape(error.hint)}[/]")
    return typer.Exit(code=int(exit_code_for(error)))


def create_plan_table(plan: ApplyPlan, dry_run: bool = False) -> Table:
    """Apps in apply order with their package and dotfile counts."""
    title = "Apply Plan (Dry Run)" if dry_run else "Apply Plan"
    table = create_table(title, "#", "App", "Package", "Dotfiles", "Hooks")
    for index, bundle in enumerate(plan.bundles, start=1):
        package = bundle.package
        managers = []
        if package is not None:
            managers = [name for name in ("brew", "apt", "dnf", "pacman") if package.name_for(name)]
            if package.custom is not None:
                managers.append("custom")
        table.add_row(
            str(index),
            bundle.name,
            f"[muted]{', '.join(managers) or '-'}[/]",
            str(len(plan.dotfiles_for(bundle.name))),
            str(len(bundle.apply_hooks)),
        )
    return table


def print_plan(plan: ApplyPlan, dry_run: bool = False) -> None:
    """Print resolved profiles, the app table and any risk findings."""
    names = ", ".join(profile.name for profile in plan.profiles)
    console.print(f"[header]Profiles:[/] {names}")
    console.print(create_plan_table(plan, dry_run))
    if plan.dotfiles:
        for item in plan.dotfiles:
            console.print(
                f"  [muted]{item.app}:[/] {escape(str(item.target))} -> {escape(str(item.source))}"
            )
    for finding in plan.risks:
        console.print(f"[risk]risk[/] {escape(finding.describe())}")


_ACTION_STYLES = {
    LinkAction.CREATED: "success",
    LinkAction.REPLACED: "warning",
    LinkAction.UNCHANGED: "muted",
    LinkAction.SKIPPED: "muted",
}


def create_links_table(result: ApplyResult) -> Table:
    table = create_table("Dotfiles", "Action", "Target", "Snapshot")
    for outcome in result.links:
        style = _ACTION_STYLES[outcome.action]
        snapshot = outcome.snapshot.path if outcome.snapshot is not None else ""
        table.add_row(
            f"[{style}]{outcome.action.value}[/]",
            escape(str(outcome.target)),
            f"[muted]{escape(str(snapshot))}[/]",
        )
    return table


def create_status_table(entries: list[DotfileStatus]) -> Table:
    table = create_table("Dotfile Status", "App", "Target", "Status", "Details")
    for entry in entries:
        details = f"points to {entry.actual}" if entry.actual is not None else ""
        table.add_row(
            entry.app,
            escape(str(entry.target)),
            format_link_status(entry.status.value),
            f"[muted]{escape(details)}[/]",
        )
    return table
