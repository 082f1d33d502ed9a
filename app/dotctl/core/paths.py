"""Repository path management for dotctl.

The repository is a single git-tracked directory (``~/.dotctl`` by default,
overridable with ``DOTCTL_DIR``). Repo-owned files (bundles, profiles,
config, global aliases, dotfile payloads) sync across machines; the
dot-directories, ``state.yaml`` and ``generated/`` are machine-local.

Layout:
- config.yaml, aliases.yaml, state.yaml, .gitignore
- apps/<name>.yaml
- profiles/<name>/profile.yaml
- dotfiles/<bundle>/<relpath>
- generated/init.sh
- .operations/, .history/, .locks/
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "dotctl"

# Environment variable overriding the repository location
REPO_DIR_ENV = "DOTCTL_DIR"


def get_repo_dir() -> Path:
    """Get the repository directory path.

    Returns:
        Path from DOTCTL_DIR, or ~/.dotctl.
    """
    override = os.environ.get(REPO_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / f".{APP_NAME}"


def get_user_config_dir() -> Path:
    """Get the per-user configuration directory (XDG_CONFIG_HOME aware).

    Only presentation settings live here; everything declarative lives in
    the repository.

    Returns:
        Path to ~/.config/dotctl/ (or XDG_CONFIG_HOME/dotctl/).
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".config" / APP_NAME


@dataclass(frozen=True, slots=True)
class RepoPaths:
    """Every well-known path inside a repository.

    Attributes:
        root: Repository root directory.
    """

    root: Path

    @classmethod
    def default(cls) -> "RepoPaths":
        """Build paths for the default repository location."""
        return cls(root=get_repo_dir())

    @property
    def config_file(self) -> Path:
        return self.root / "config.yaml"

    @property
    def state_file(self) -> Path:
        return self.root / "state.yaml"

    @property
    def aliases_file(self) -> Path:
        return self.root / "aliases.yaml"

    @property
    def gitignore_file(self) -> Path:
        return self.root / ".gitignore"

    @property
    def apps_dir(self) -> Path:
        return self.root / "apps"

    @property
    def profiles_dir(self) -> Path:
        return self.root / "profiles"

    @property
    def dotfiles_dir(self) -> Path:
        return self.root / "dotfiles"

    @property
    def generated_dir(self) -> Path:
        return self.root / "generated"

    @property
    def init_script(self) -> Path:
        return self.generated_dir / "init.sh"

    @property
    def operations_dir(self) -> Path:
        return self.root / ".operations"

    @property
    def history_dir(self) -> Path:
        return self.root / ".history"

    @property
    def locks_dir(self) -> Path:
        return self.root / ".locks"

    @property
    def apply_lock(self) -> Path:
        return self.locks_dir / "apply.lock"

    def bundle_file(self, name: str) -> Path:
        """Path of the bundle file for app ``name``."""
        return self.apps_dir / f"{name}.yaml"

    def profile_file(self, name: str) -> Path:
        """Path of the profile file for profile ``name``."""
        return self.profiles_dir / name / "profile.yaml"

    def dotfile_source(self, source: str) -> Path:
        """Absolute path of a repo-relative dotfile source."""
        return self.dotfiles_dir / source
