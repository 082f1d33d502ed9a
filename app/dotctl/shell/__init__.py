"""Shell init script generation."""

from dotctl.shell.generator import (
    ShellType,
    export_aliases,
    generate,
    render,
)

__all__ = [
    "ShellType",
    "export_aliases",
    "generate",
    "render",
]
