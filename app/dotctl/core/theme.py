"""CLI color theme.

Colors come from the bundled ``data/theme.toml``, optionally overridden
key by key from ``~/.config/dotctl/theme.toml``. The result is turned
into a Rich Theme whose style names the display code refers to
(``success``, ``status.linked``, ``risk`` ...).
"""

import logging
import re
import tomllib
from functools import cache
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from rich.theme import Theme

from dotctl.core.paths import get_user_config_dir

logger = logging.getLogger(__name__)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]{3}|[0-9a-fA-F]{6}")


class ThemeColors(BaseModel):
    """Hex colors for every role the CLI styles (#RGB or #RRGGBB)."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    linked: str = "#c1ff62"
    drifted: str = "#0e8ac8"
    missing: str = "#f53263"
    unmanaged: str = "#faf870"

    risk: str = "#d44ebc"

    @field_validator("*", mode="before")
    @classmethod
    def _check_hex(cls, value: object, info: ValidationInfo) -> str:
        if not isinstance(value, str):
            raise ValueError(f"{info.field_name}: color must be a string")
        color = value.strip()
        if not color.startswith("#"):
            raise ValueError(f"{info.field_name}: color must start with '#'")
        if not _HEX_DIGITS.fullmatch(color[1:]):
            raise ValueError(f"{info.field_name}: invalid hex color '{color}'")
        return color


# Rich style name -> (color field, style prefix)
_STYLES: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "dim": ("muted", ""),
    "header": ("header", ""),
    "bold_header": ("header", "bold "),
    "border": ("border", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold "),
    "info": ("info", ""),
    "risk": ("risk", "bold "),
    "status.linked": ("linked", ""),
    "status.drifted": ("drifted", ""),
    "status.missing": ("missing", ""),
    "status.unmanaged": ("unmanaged", ""),
}


def get_user_theme_path() -> Path:
    return get_user_config_dir() / "theme.toml"


def _bundled_theme_path() -> Path:
    return Path(str(resources.files("dotctl.data").joinpath("theme.toml")))


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Non-string values are dropped. Returns None when the file is missing
    or unreadable, so callers can fall back to other sources.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    table = data.get("colors", {})
    if not isinstance(table, dict):
        logger.warning("Ignoring theme file %s: 'colors' is not a table", path)
        return None
    return {key: value for key, value in table.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Merge the bundled and user theme files into ThemeColors.

    An invalid merged theme falls back to the built-in defaults.
    """
    merged: dict[str, str] = {}
    for path in (_bundled_theme_path(), get_user_theme_path()):
        colors = _load_toml_colors(path)
        if colors is not None:
            logger.debug("Loaded %d theme color(s) from %s", len(colors), path)
            merged.update(colors)

    try:
        return ThemeColors(**merged)
    except ValueError as e:
        logger.warning("Invalid theme colors, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich Theme for ``colors`` (default: :func:`load_theme`)."""
    if colors is None:
        colors = load_theme()
    return Theme(
        {name: prefix + getattr(colors, field) for name, (field, prefix) in _STYLES.items()}
    )


@cache
def get_theme() -> Theme:
    """Rich theme shared by the CLI consoles, loaded once per process."""
    return get_rich_theme()
