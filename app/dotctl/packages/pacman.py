"""Pacman package manager driver."""

from dotctl.packages.base import PackageManager
from dotctl.utils.shell import command_exists


class PacmanManager(PackageManager):
    """Driver for pacman (Arch family). Requires sudo for changes."""

    @property
    def name(self) -> str:
        return "pacman"

    def is_available(self) -> bool:
        return command_exists("pacman")

    def install(self, package: str) -> None:
        self._run(["sudo", "pacman", "-S", "--needed", "--noconfirm", package], package, "install")

    def uninstall(self, package: str) -> None:
        self._run(["sudo", "pacman", "-R", "--noconfirm", package], package, "uninstall")

    def is_installed(self, package: str) -> bool:
        # pacman -Q exits 1 for packages that are not installed
        result = self._probe(["pacman", "-Q", package], package)
        return result is not None and result.success
