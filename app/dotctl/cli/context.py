"""Helpers shared by CLI commands for reaching the repository and machine."""

from pathlib import Path

import typer

from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform, detect


def get_paths(ctx: typer.Context) -> RepoPaths:
    """Repository paths chosen by the root ``--repo`` option (or the default)."""
    obj = ctx.find_root().obj or {}
    repo = obj.get("repo")
    return RepoPaths(Path(repo).expanduser()) if repo else RepoPaths.default()


def get_platform() -> Platform:
    return detect()


def expand_user_path(value: Path, platform: Platform) -> Path:
    """Expand ``~`` against the detected home and make ``value`` absolute."""
    text = str(value)
    if text == "~" or text.startswith("~/"):
        return platform.home / text[2:]
    return value.absolute()
