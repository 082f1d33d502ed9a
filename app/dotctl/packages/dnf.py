"""DNF package manager driver."""

from dotctl.packages.base import PackageManager
from dotctl.utils.shell import command_exists


class DnfManager(PackageManager):
    """Driver for DNF (Fedora family). Requires sudo for changes."""

    @property
    def name(self) -> str:
        return "dnf"

    def is_available(self) -> bool:
        return command_exists("dnf")

    def install(self, package: str) -> None:
        self._run(["sudo", "dnf", "install", "-y", package], package, "install")

    def uninstall(self, package: str) -> None:
        self._run(["sudo", "dnf", "remove", "-y", package], package, "uninstall")

    def is_installed(self, package: str) -> bool:
        result = self._probe(["dnf", "list", "installed", package], package)
        return result is not None and result.success
