"""Package manager selection for a bundle.

Selection order for the manager that installs a bundle's package:

1. ``package.prefer.<platform>`` from the bundle,
2. ``package_manager.prefer.<platform>`` from config.yaml,
3. the platform's auto-detected manager,
4. the first available manager, in probe order, for which the package
   defines a name.

A manager only qualifies when the package defines a name for it and the
manager is available on this machine. Every qualifying manager becomes a
probe; installation is skipped if any probe reports the package installed.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from dotctl.core.platform import Platform
from dotctl.models.bundle import Package, PlatformPreference
from dotctl.models.config import Config
from dotctl.packages.apt import AptManager
from dotctl.packages.base import NoOpManager, PackageManager
from dotctl.packages.brew import BrewManager
from dotctl.packages.dnf import DnfManager
from dotctl.packages.pacman import PacmanManager

logger = logging.getLogger(__name__)

# Order in which alternative managers are probed
PROBE_ORDER = ("brew", "apt", "dnf", "pacman")

_DRIVERS: dict[str, type[PackageManager]] = {
    "brew": BrewManager,
    "apt": AptManager,
    "dnf": DnfManager,
    "pacman": PacmanManager,
}

# Returns an available manager for a name, or None
ManagerFactory = Callable[[str], PackageManager | None]


@dataclass(frozen=True, slots=True)
class ManagerCandidate:
    """A manager able to handle a package.

    Attributes:
        name: Manager name.
        manager: Driver instance.
        package_name: Package name for this manager.
    """

    name: str
    manager: PackageManager
    package_name: str


@dataclass(frozen=True, slots=True)
class ManagerPlan:
    """Selected manager plus every candidate to probe (selected first)."""

    selected: ManagerCandidate
    probes: tuple[ManagerCandidate, ...]


def default_factory(name: str) -> PackageManager | None:
    """Instantiate the driver for ``name`` if it is available on this machine."""
    driver = _DRIVERS.get(normalize_name(name))
    if driver is None:
        return None
    manager = driver()
    return manager if manager.is_available() else None


def auto_manager(platform: Platform, factory: ManagerFactory = default_factory) -> PackageManager:
    """Pick the native manager for the platform.

    macOS uses brew, the Debian family apt, the Fedora family dnf and the
    Arch family pacman. Anything else (or a missing native manager) gets
    the NoOpManager.
    """
    if platform.is_macos:
        native = "brew"
    elif platform.is_debian:
        native = "apt"
    elif platform.is_fedora:
        native = "dnf"
    elif platform.is_arch:
        native = "pacman"
    else:
        return NoOpManager()
    return factory(native) or NoOpManager()


def normalize_name(name: str | None) -> str:
    return (name or "").strip().lower()


def preferred_name(prefer: PlatformPreference | None, platform: Platform) -> str:
    """Preferred manager for the platform; WSL falls back to the linux entry."""
    if prefer is None:
        return ""
    if platform.is_macos:
        return normalize_name(prefer.macos)
    if platform.is_wsl and prefer.wsl:
        return normalize_name(prefer.wsl)
    return normalize_name(prefer.linux)


def resolve_manager_plan(
    package: Package | None,
    platform: Platform,
    config: Config | None = None,
    *,
    factory: ManagerFactory = default_factory,
) -> ManagerPlan | None:
    """Resolve which manager installs ``package`` and which ones to probe.

    Args:
        package: Package definition from a bundle.
        platform: Platform facts.
        config: Repository configuration (for manager preferences).
        factory: Creates available managers by name.

    Returns:
        ManagerPlan, or None if no available manager can install the package.
    """
    if package is None:
        return None

    candidates: dict[str, ManagerCandidate] = {}

    def add_candidate(name: str) -> bool:
        name = normalize_name(name)
        if not name:
            return False
        if name in candidates:
            return True
        package_name = package.name_for(name)
        if not package_name:
            return False
        manager = factory(name)
        if manager is None:
            logger.debug("Manager %s not available for %s", name, package_name)
            return False
        candidates[name] = ManagerCandidate(name, manager, package_name)
        return True

    config_prefer = config.package_manager.prefer if config is not None else None
    ordered = [
        preferred_name(package.prefer, platform),
        preferred_name(config_prefer, platform),
        normalize_name(auto_manager(platform, factory).name),
    ]

    selected = ""
    for name in ordered:
        if add_candidate(name):
            selected = name
            break

    for name in PROBE_ORDER:
        if add_candidate(name) and not selected:
            selected = name

    if not selected:
        return None

    probes = [candidates[selected]]
    probes.extend(
        candidates[name] for name in PROBE_ORDER if name != selected and name in candidates
    )
    return ManagerPlan(selected=candidates[selected], probes=tuple(probes))
