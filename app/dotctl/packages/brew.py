"""Homebrew package manager driver."""

from dotctl.core.errors import PackageManagerError
from dotctl.packages.base import PackageManager
from dotctl.utils.shell import command_exists


class BrewManager(PackageManager):
    """Driver for Homebrew formulae and casks."""

    @property
    def name(self) -> str:
        return "brew"

    def is_available(self) -> bool:
        return command_exists("brew")

    def install(self, package: str) -> None:
        self._run(["brew", "install", package], package, "install")

    def uninstall(self, package: str) -> None:
        self._run(["brew", "uninstall", package], package, "uninstall")

    def is_installed(self, package: str) -> bool:
        """``brew list`` exits 1 for packages that are not installed."""
        result = self._probe(["brew", "list", package], package)
        if result is None:
            return False
        if result.success:
            return True
        if result.returncode == 1:
            return False
        msg = f"failed to check if {package} is installed: {result.stderr.strip()}"
        raise PackageManagerError(msg, subject=package)
