"""Package manager drivers and manager selection."""

from dotctl.packages.apt import AptManager
from dotctl.packages.base import NoOpManager, PackageManager
from dotctl.packages.brew import BrewManager
from dotctl.packages.dnf import DnfManager
from dotctl.packages.pacman import PacmanManager
from dotctl.packages.selection import ManagerCandidate, ManagerPlan, resolve_manager_plan

__all__ = [
    "AptManager",
    "BrewManager",
    "DnfManager",
    "ManagerCandidate",
    "ManagerPlan",
    "NoOpManager",
    "PackageManager",
    "PacmanManager",
    "resolve_manager_plan",
]
