"""Data models for dotctl.

This module exports the core data structures used throughout the application.
"""

from dotctl.models.aliases import GlobalAliases
from dotctl.models.bundle import (
    ApplyHook,
    AptPackage,
    Bundle,
    Completions,
    CustomInstall,
    Dotfile,
    Hooks,
    InitSnippet,
    Package,
    PlatformPreference,
    Plugin,
    Shell,
    TargetMap,
)
from dotctl.models.config import Config
from dotctl.models.operation import Operation, OperationType, SnapshotKind, SnapshotRecord
from dotctl.models.profile import Profile, ProfileCondition
from dotctl.models.state import AppliedProfile, State

__all__ = [
    "AppliedProfile",
    "ApplyHook",
    "AptPackage",
    "Bundle",
    "Completions",
    "Config",
    "CustomInstall",
    "Dotfile",
    "GlobalAliases",
    "Hooks",
    "InitSnippet",
    "Operation",
    "OperationType",
    "Package",
    "PlatformPreference",
    "Plugin",
    "Profile",
    "ProfileCondition",
    "Shell",
    "SnapshotKind",
    "SnapshotRecord",
    "State",
    "TargetMap",
]
