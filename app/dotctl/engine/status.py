"""Read-only link status for applied dotfiles.

Status never takes the apply lock; it may observe an apply in progress.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotctl.core.loader import load_all_profiles, load_state
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform
from dotctl.core.resolver import (
    ResolvedDotfile,
    collect_apps,
    load_bundles,
    resolve_apps,
    resolve_dotfiles,
    resolve_profiles,
)
from dotctl.engine.linker import link_destination, points_to
from dotctl.library.manager import RecipeLibrary

logger = logging.getLogger(__name__)


class LinkStatus(str, Enum):
    """State of one dotfile target."""

    LINKED = "linked"
    DRIFTED = "drifted"
    MISSING = "missing"
    UNMANAGED = "unmanaged-file"


@dataclass(frozen=True, slots=True)
class DotfileStatus:
    """Status of one effective dotfile.

    Attributes:
        app: Owning bundle.
        target: Effective target path.
        source: Expected symlink destination.
        status: Observed state.
        actual: Where the target points when it is a foreign symlink.
    """

    app: str
    target: Path
    source: Path
    status: LinkStatus
    actual: Path | None = None


def classify(item: ResolvedDotfile) -> DotfileStatus:
    """Inspect the target of ``item`` on disk."""
    target = item.target
    if points_to(target, item.source):
        return DotfileStatus(item.app, target, item.source, LinkStatus.LINKED)

    destination = link_destination(target)
    if destination is not None:
        return DotfileStatus(item.app, target, item.source, LinkStatus.DRIFTED, destination)
    if not target.exists():
        return DotfileStatus(item.app, target, item.source, LinkStatus.MISSING)
    return DotfileStatus(item.app, target, item.source, LinkStatus.UNMANAGED)


def collect_status(
    paths: RepoPaths,
    platform: Platform,
    library: RecipeLibrary | None = None,
    profiles: list[str] | None = None,
) -> list[DotfileStatus]:
    """Report the status of every dotfile of the applied profiles.

    Args:
        paths: Repository paths.
        platform: Facts for this machine.
        library: Recipe library for apps missing from ``apps/``.
        profiles: Profiles to inspect (default: those in state.yaml).

    Returns:
        One entry per effective dotfile, in apply order.
    """
    names = profiles if profiles else load_state(paths).profile_names
    if not names:
        logger.info("No applied profiles recorded in %s", paths.state_file)
        return []

    resolved = resolve_profiles(names, load_all_profiles(paths), platform)
    app_names = collect_apps(resolved)
    bundles = resolve_apps(
        app_names, load_bundles(app_names, paths, library, best_effort=True), best_effort=True
    )
    return [classify(item) for item in resolve_dotfiles(bundles, platform, paths)]
