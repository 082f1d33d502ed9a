"""Repository configuration model (``config.yaml``, kind ``Config/v1``).

Every section is optional in the file; a missing file or section falls
back to the defaults defined here.
"""

import re
from datetime import timedelta
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dotctl.core.schema import make_kind
from dotctl.models.bundle import PlatformPreference

CONFIG_KIND = make_kind("Config")

# Strategy for duplicate alias names across bundles
AliasStrategy = Literal["last_wins", "error", "prompt"]

# Strategy for dotfile targets that already exist
DotfileStrategy = Literal["error", "backup_and_replace", "prompt"]

ColorMode = Literal["auto", "always", "never"]

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> timedelta | None:
    """Parse a compact duration such as "24h", "30m", "90s" or "1h30m".

    Returns None when ``value`` is not in that form.
    """
    text = value.strip()
    if not text or _DURATION_PART.sub("", text):
        return None
    seconds = sum(
        float(number) * _DURATION_UNITS[unit] for number, unit in _DURATION_PART.findall(text)
    )
    return timedelta(seconds=seconds)


class ConflictResolution(BaseModel):
    """Conflict strategies for aliases and dotfiles."""

    model_config = ConfigDict(extra="forbid")

    aliases: Annotated[AliasStrategy, Field(description="Duplicate alias strategy")] = (
        "last_wins"
    )
    dotfiles: Annotated[DotfileStrategy, Field(description="Existing target strategy")] = (
        "backup_and_replace"
    )


class PackageManagerConfig(BaseModel):
    """Package manager preferences."""

    model_config = ConfigDict(extra="forbid")

    prefer: Annotated[PlatformPreference, Field(default_factory=PlatformPreference)]


class SecurityConfig(BaseModel):
    """Security toggles for scripts and hooks.

    Attributes:
        confirm_scripts: Ask before running custom install scripts.
        log_scripts: Log script contents before running them.
    """

    model_config = ConfigDict(extra="forbid")

    confirm_scripts: bool = True
    log_scripts: bool = False


class HistoryConfig(BaseModel):
    """Snapshot history retention."""

    model_config = ConfigDict(extra="forbid")

    max_size_mb: Annotated[int, Field(ge=0, description="History size budget in MB")] = 512

    @property
    def max_size_bytes(self) -> int:
        return self.max_size_mb * 1024 * 1024


class HooksConfig(BaseModel):
    """Hook execution settings."""

    model_config = ConfigDict(extra="forbid")

    timeout_seconds: Annotated[float, Field(gt=0, description="Per-hook timeout")] = 30.0


class UpdatesConfig(BaseModel):
    """Self-update check settings."""

    model_config = ConfigDict(extra="forbid")

    disabled: bool = False
    check_interval: Annotated[timedelta, Field(description="Time between checks")] = timedelta(
        hours=24
    )

    @field_validator("check_interval", mode="before")
    @classmethod
    def _parse_compact_duration(cls, value: object) -> object:
        if isinstance(value, str):
            parsed = parse_duration(value)
            if parsed is not None:
                return parsed
        return value


class UIConfig(BaseModel):
    """Terminal output settings."""

    model_config = ConfigDict(extra="forbid")

    color: ColorMode = "auto"


class Config(BaseModel):
    """Global repository defaults.

    Attributes:
        kind: Schema header ("Config/v1").
        shell: Default shell for the generated init script (None: detect).
        conflict_resolution: Alias and dotfile conflict strategies.
        package_manager: Manager preferences per platform.
        security: Script confirmation toggles.
        history: Snapshot retention budget.
        hooks: Hook timeout.
        updates: Update check settings.
        ui: Color mode.
    """

    model_config = ConfigDict(extra="forbid")

    kind: Annotated[str, Field(description="Schema kind header")] = CONFIG_KIND
    shell: Annotated[str | None, Field(description="Default shell")] = None
    conflict_resolution: Annotated[ConflictResolution, Field(default_factory=ConflictResolution)]
    package_manager: Annotated[PackageManagerConfig, Field(default_factory=PackageManagerConfig)]
    security: Annotated[SecurityConfig, Field(default_factory=SecurityConfig)]
    history: Annotated[HistoryConfig, Field(default_factory=HistoryConfig)]
    hooks: Annotated[HooksConfig, Field(default_factory=HooksConfig)]
    updates: Annotated[UpdatesConfig, Field(default_factory=UpdatesConfig)]
    ui: Annotated[UIConfig, Field(default_factory=UIConfig)]
