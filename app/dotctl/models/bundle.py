"""App bundle models.

A bundle (``apps/<name>.yaml``, kind ``App/v1``) declares everything dotctl
knows about one tool: how to install it, which dotfiles it owns, what it
contributes to the shell and which hooks run on apply.
"""

import re
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dotctl.core.schema import make_kind

BUNDLE_KIND = make_kind("App")

# Bundle names double as file names
_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

# Platform tokens accepted in target maps and prefer hints
PLATFORM_TOKENS = ("macos", "linux", "wsl")


def validate_bundle_name(name: str) -> str:
    """Validate that ``name`` is usable as a bundle file name.

    Raises:
        ValueError: If the name is empty or contains unsafe characters.
    """
    if not _NAME_PATTERN.match(name):
        msg = f"Invalid app name {name!r}: use letters, digits, '.', '_' or '-'"
        raise ValueError(msg)
    return name


class AptPackage(BaseModel):
    """APT package definition with optional third-party repository.

    Attributes:
        name: Package name.
        repo: One-line "deb ..." sources entry or a "ppa:" shortcut.
        key: http(s) URL of the repository signing key.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1, description="APT package name")]
    repo: Annotated[str | None, Field(description="Repository to add first")] = None
    key: Annotated[str | None, Field(description="Signing key URL")] = None

    @field_validator("repo")
    @classmethod
    def _single_line_repo(cls, value: str | None) -> str | None:
        if value is not None and ("\n" in value or "\r" in value or not value.strip()):
            raise ValueError("repo must be a single non-empty line")
        return value

    @field_validator("key")
    @classmethod
    def _http_key_url(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith(("https://", "http://")):
            raise ValueError(f"key must be an http(s) URL, got {value!r}")
        return value


class CustomInstall(BaseModel):
    """Custom installation script.

    Attributes:
        script: Shell script that installs the tool.
        sudo: Whether the script needs root.
        confirm: Ask before running (unset means ask).
    """

    model_config = ConfigDict(extra="forbid")

    script: Annotated[str, Field(min_length=1, description="Install script")]
    sudo: Annotated[bool, Field(description="Run with sudo")] = False
    confirm: Annotated[bool | None, Field(description="Ask before running")] = None


class PlatformPreference(BaseModel):
    """Preferred package manager per platform token."""

    model_config = ConfigDict(extra="forbid")

    macos: str | None = None
    linux: str | None = None
    wsl: str | None = None

    def for_os(self, os_name: str) -> str | None:
        """Return the preferred manager for ``os_name``, if any."""
        if os_name not in PLATFORM_TOKENS:
            return None
        return getattr(self, os_name)


class Package(BaseModel):
    """How to install a bundle's tool, one alternative per manager.

    Attributes:
        brew: Homebrew formula.
        apt: APT package (a bare string is accepted as the package name).
        dnf: DNF package.
        pacman: Pacman package.
        custom: Custom install script.
        prefer: Preferred manager per platform.
    """

    model_config = ConfigDict(extra="forbid")

    brew: str | None = None
    apt: AptPackage | None = None
    dnf: str | None = None
    pacman: str | None = None
    custom: CustomInstall | None = None
    prefer: PlatformPreference | None = None

    @field_validator("apt", mode="before")
    @classmethod
    def coerce_apt_string(cls, value: Any) -> Any:
        """Accept ``apt: name`` as shorthand for ``apt: {name: name}``."""
        if isinstance(value, str):
            return {"name": value}
        return value

    def name_for(self, manager: str) -> str | None:
        """Return the package name defined for ``manager``.

        Args:
            manager: Manager name ("brew", "apt", "dnf", "pacman").

        Returns:
            Package name, or None if this package has no entry for it.
        """
        if manager == "apt":
            return self.apt.name if self.apt is not None else None
        if manager in ("brew", "dnf", "pacman"):
            return getattr(self, manager) or None
        return None


class TargetMap(BaseModel):
    """Per-platform dotfile targets with a default fallback."""

    model_config = ConfigDict(extra="forbid")

    default: str | None = None
    linux: str | None = None
    macos: str | None = None
    wsl: str | None = None

    def for_os(self, os_name: str) -> str | None:
        """Pick the target for ``os_name``, falling back to ``default``."""
        if os_name in PLATFORM_TOKENS:
            value = getattr(self, os_name)
            if value:
                return value
        return self.default


class Dotfile(BaseModel):
    """A configuration file linked from the repository into the home tree.

    Attributes:
        source: Path relative to the repository's ``dotfiles/`` directory.
        target: Absolute or ``~``-prefixed path, or a per-platform map.
        secret: Keep the source out of git (added to .gitignore on track).
        when: Condition gating whether this dotfile applies.
    """

    model_config = ConfigDict(extra="forbid")

    source: Annotated[str, Field(min_length=1, description="Repo-relative source")]
    target: Annotated[str | TargetMap, Field(description="Link target")]
    secret: Annotated[bool, Field(description="Exclude source from git")] = False
    when: Annotated[str | None, Field(description="Condition expression")] = None


class InitSnippet(BaseModel):
    """Shell initialization code with optional per-shell overrides."""

    model_config = ConfigDict(extra="forbid")

    name: str
    common: str | None = None
    bash: str | None = None
    zsh: str | None = None
    guard: str | None = None

    def for_shell(self, shell: str) -> str | None:
        """Return the snippet body for ``shell`` (override first, then common)."""
        if shell in ("bash", "zsh"):
            override = getattr(self, shell)
            if override:
                return override
        return self.common


class Completions(BaseModel):
    """Commands that emit shell completion code."""

    model_config = ConfigDict(extra="forbid")

    bash: str | None = None
    zsh: str | None = None


class Shell(BaseModel):
    """Shell integration contributed by a bundle."""

    model_config = ConfigDict(extra="forbid")

    env: Annotated[dict[str, str], Field(default_factory=dict)]
    aliases: Annotated[dict[str, str], Field(default_factory=dict)]
    functions: Annotated[dict[str, str], Field(default_factory=dict)]
    init: Annotated[list[InitSnippet], Field(default_factory=list)]
    completions: Completions | None = None


class ApplyHook(BaseModel):
    """Command run after a bundle has been applied."""

    model_config = ConfigDict(extra="forbid")

    run: Annotated[str, Field(min_length=1, description="Shell command")]
    when: Annotated[str | None, Field(description="Condition expression")] = None


class RemoveHook(BaseModel):
    """Command run when a bundle is removed."""

    model_config = ConfigDict(extra="forbid")

    run: Annotated[str, Field(min_length=1, description="Shell command")]


class Hooks(BaseModel):
    """Lifecycle hooks."""

    model_config = ConfigDict(extra="forbid")

    apply: Annotated[list[ApplyHook], Field(default_factory=list)]
    remove: Annotated[list[RemoveHook], Field(default_factory=list)]


class Plugin(BaseModel):
    """Plugin installed alongside the tool."""

    model_config = ConfigDict(extra="forbid")

    name: str
    install: str


class Bundle(BaseModel):
    """Declarative unit of work for one tool.

    Attributes:
        kind: Schema header ("App/v1").
        name: Unique, filename-safe identifier.
        description: Human-readable description.
        dependencies: Names of bundles that must be applied first.
        package: Installation alternatives.
        dotfiles: Files linked into the home tree.
        shell: Shell integration.
        hooks: Lifecycle hooks.
        companions: Related apps suggested to the user.
        plugins: Plugin installations.
    """

    model_config = ConfigDict(extra="forbid")

    kind: Annotated[str, Field(description="Schema kind header")] = BUNDLE_KIND
    name: Annotated[str, Field(description="Bundle identifier")]
    description: Annotated[str | None, Field(description="Bundle description")] = None
    dependencies: Annotated[list[str], Field(default_factory=list)]
    package: Package | None = None
    dotfiles: Annotated[list[Dotfile], Field(default_factory=list)]
    shell: Shell | None = None
    hooks: Hooks | None = None
    companions: Annotated[list[str], Field(default_factory=list)]
    plugins: Annotated[list[Plugin], Field(default_factory=list)]

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return validate_bundle_name(value)

    @property
    def apply_hooks(self) -> list[ApplyHook]:
        return self.hooks.apply if self.hooks is not None else []

    def has_dotfile_source(self, source: str) -> bool:
        return any(dotfile.source == source for dotfile in self.dotfiles)
