"""Abstract base class for package managers.

This module defines the PackageManager interface that every driver
implements, plus the NoOpManager used when no manager is available.
"""

import logging
import subprocess
from abc import ABC, abstractmethod

from dotctl.core.errors import PackageManagerError
from dotctl.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)


class PackageManager(ABC):
    """Abstract base class for all package manager drivers.

    Drivers install, uninstall and probe single packages for one package
    manager. They never decide *which* manager to use; see
    ``dotctl.packages.selection`` for that.

    Example:
        >>> manager = AptManager()
        >>> if manager.is_available() and not manager.is_installed("ripgrep"):
        ...     manager.install("ripgrep")
    """

    # Timeout for install/uninstall commands (10 minutes)
    _INSTALL_TIMEOUT: float = 600.0

    # Timeout for installed-state probes
    _PROBE_TIMEOUT: float = 30.0

    @property
    @abstractmethod
    def name(self) -> str:
        """Manager name: "brew", "apt", "dnf", "pacman" or "none"."""

    @abstractmethod
    def install(self, package: str) -> None:
        """Install a package.

        Args:
            package: Package name.

        Raises:
            PackageManagerError: If installation fails.
        """

    @abstractmethod
    def uninstall(self, package: str) -> None:
        """Uninstall a package.

        Raises:
            PackageManagerError: If removal fails.
        """

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        """Check whether a package is installed.

        Raises:
            PackageManagerError: If the probe itself cannot run.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system."""

    def _run(self, args: list[str], package: str, action: str) -> CommandResult:
        """Run an install/uninstall command, raising on failure.

        Args:
            args: Command and arguments.
            package: Package the command acts on (for messages).
            action: Verb for messages ("install", "uninstall", ...).

        Raises:
            PackageManagerError: On non-zero exit, timeout or missing executable.
        """
        _require_name(package)
        logger.info("Running %s %s for %s", self.name, action, package)
        try:
            result = run_command(args, timeout=self._INSTALL_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            msg = f"failed to {action} {package} via {self.name}: timed out after {e.timeout}s"
            raise PackageManagerError(msg, subject=package) from e
        except OSError as e:
            msg = f"failed to {action} {package} via {self.name}: {e}"
            raise PackageManagerError(msg, subject=package) from e

        if not result.success:
            msg = f"failed to {action} {package} via {self.name} (exit {result.returncode})"
            if result.output:
                msg = f"{msg}\nOutput: {result.output}"
            raise PackageManagerError(msg, subject=package)
        return result

    def _probe(self, args: list[str], package: str) -> CommandResult | None:
        """Run a read-only probe command.

        Returns:
            The command result, or None if the executable is missing.

        Raises:
            PackageManagerError: If the probe times out.
        """
        _require_name(package)
        try:
            return run_command(args, timeout=self._PROBE_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            msg = f"failed to check if {package} is installed via {self.name}: timed out"
            raise PackageManagerError(msg, subject=package) from e
        except FileNotFoundError:
            return None


class NoOpManager(PackageManager):
    """Manager used when no supported package manager is available."""

    @property
    def name(self) -> str:
        return "none"

    def install(self, package: str) -> None:
        logger.debug("No package manager available, not installing %s", package)

    def uninstall(self, package: str) -> None:
        logger.debug("No package manager available, not uninstalling %s", package)

    def is_installed(self, package: str) -> bool:
        return False

    def is_available(self) -> bool:
        return True


def _require_name(package: str) -> None:
    if not package:
        raise PackageManagerError("package name cannot be empty")
