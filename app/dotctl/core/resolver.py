"""Two-phase dependency resolution: profiles, then apps.

Profiles are resolved first (includes before includers), each returned as
an *effective* copy with its matching conditional rules folded in. The
apps those profiles select are then resolved against the available
bundles (dependencies before dependents). Both phases use a depth-first
walk that tracks the current recursion stack to reject cycles.

Finally every bundle's dotfiles are turned into concrete source/target
paths for the current platform.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from dotctl.core import condition
from dotctl.core.errors import CircularDependencyError, ConflictError, NotFoundError
from dotctl.core.loader import load_local_bundle
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform, expand_home
from dotctl.library.manager import RecipeLibrary
from dotctl.models.bundle import Bundle, Dotfile, TargetMap
from dotctl.models.profile import Profile

logger = logging.getLogger(__name__)


def _dedupe(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


def effective_profile(profile: Profile, facts: Platform) -> Profile:
    """Fold matching conditional rules into a copy of ``profile``.

    Args:
        profile: Profile as loaded from disk (never mutated).
        facts: Platform facts to evaluate conditions against.

    Returns:
        Copy whose includes and apps reflect every matching condition.

    Raises:
        ConditionError: If a condition expression is malformed.
    """
    includes = list(profile.includes)
    apps = list(profile.apps)
    excluded: set[str] = set()

    for rule in profile.conditions:
        if not condition.evaluate(rule.condition, facts):
            continue
        logger.debug("Profile %s: condition %r matched", profile.name, rule.condition)
        includes.extend(rule.includes)
        apps.extend(rule.include_apps)
        excluded.update(rule.exclude_apps)

    return profile.model_copy(
        update={
            "includes": _dedupe(includes),
            "apps": [app for app in _dedupe(apps) if app not in excluded],
        },
        deep=True,
    )


def resolve_profiles(
    names: list[str],
    profiles: dict[str, Profile],
    facts: Platform,
) -> list[Profile]:
    """Order requested profiles and their includes, includes first.

    Args:
        names: Requested profile names.
        profiles: All known profiles by name.
        facts: Platform facts for conditional rules.

    Returns:
        Effective profiles in dependency order, each appearing once.

    Raises:
        CircularDependencyError: If includes form a cycle.
        NotFoundError: If a requested or included profile does not exist.
        ConditionError: If a condition is malformed.
    """
    result: list[Profile] = []
    visited: set[str] = set()
    in_stack: set[str] = set()

    def visit(name: str) -> None:
        if name in in_stack:
            raise CircularDependencyError(name)
        if name in visited:
            return
        profile = profiles.get(name)
        if profile is None:
            raise NotFoundError(
                f"profile not found: {name}",
                subject=name,
                hint=f"Create profiles/{name}/profile.yaml or fix the include.",
            )

        effective = effective_profile(profile, facts)
        in_stack.add(name)
        for include in effective.includes:
            visit(include)
        in_stack.discard(name)
        visited.add(name)
        result.append(effective)

    for name in names:
        visit(name)
    return result


def collect_apps(profiles: list[Profile]) -> list[str]:
    """Deduplicated app names across resolved profiles, in order."""
    return _dedupe([app for profile in profiles for app in profile.apps])


def load_bundles(
    names: list[str],
    paths: RepoPaths,
    library: RecipeLibrary | None = None,
    *,
    best_effort: bool = False,
) -> dict[str, Bundle]:
    """Load the bundles for ``names`` and, transitively, their dependencies.

    Local ``apps/<name>.yaml`` files win; the recipe library fills gaps.

    Args:
        names: App names to load.
        paths: Repository paths.
        library: Recipe library fallback (None disables it).
        best_effort: Skip missing apps with a warning instead of failing.

    Returns:
        Loaded bundles by name. Missing apps are absent in best-effort mode.

    Raises:
        NotFoundError: If an app is missing and best_effort is False.
        SchemaError: If a bundle file is invalid.
    """
    bundles: dict[str, Bundle] = {}
    missing: set[str] = set()
    pending = list(names)

    while pending:
        name = pending.pop(0)
        if name in bundles or name in missing:
            continue

        bundle = load_local_bundle(paths, name)
        if bundle is None and library is not None:
            bundle = library.get(name)
            if bundle is not None:
                logger.debug("Using recipe for app %s", name)

        if bundle is None:
            if not best_effort:
                raise NotFoundError(
                    f"app not found: {name}",
                    subject=name,
                    hint=f"Create apps/{name}.yaml or remove it from the profile.",
                )
            logger.warning("App %s not found locally or in the recipe library, skipping", name)
            missing.add(name)
            continue

        bundles[name] = bundle
        pending.extend(bundle.dependencies)

    return bundles


def resolve_apps(
    names: list[str],
    bundles: dict[str, Bundle],
    *,
    best_effort: bool = False,
) -> list[Bundle]:
    """Order bundles so that dependencies come before dependents.

    Args:
        names: Requested app names.
        bundles: Available bundles by name.
        best_effort: Skip apps missing from ``bundles`` instead of failing.

    Returns:
        Bundles in dependency order, each appearing once.

    Raises:
        CircularDependencyError: If dependencies form a cycle.
        NotFoundError: If an app is missing and best_effort is False.
    """
    result: list[Bundle] = []
    visited: set[str] = set()
    in_stack: set[str] = set()

    def visit(name: str) -> None:
        if name in in_stack:
            raise CircularDependencyError(name)
        if name in visited:
            return
        bundle = bundles.get(name)
        if bundle is None:
            if best_effort:
                logger.warning("Skipping missing app %s", name)
                visited.add(name)
                return
            raise NotFoundError(f"app not found: {name}", subject=name)

        in_stack.add(name)
        for dependency in bundle.dependencies:
            visit(dependency)
        in_stack.discard(name)
        visited.add(name)
        result.append(bundle)

    for name in names:
        visit(name)
    return result


@dataclass(frozen=True, slots=True)
class ResolvedDotfile:
    """A dotfile with concrete paths for this machine.

    Attributes:
        app: Owning bundle name.
        dotfile: Declaration from the bundle.
        source: Absolute source path under ``dotfiles/``.
        target: Absolute effective target.
    """

    app: str
    dotfile: Dotfile
    source: Path
    target: Path


def effective_target(dotfile: Dotfile, facts: Platform) -> Path | None:
    """Compute a dotfile's effective target.

    Args:
        dotfile: Dotfile declaration.
        facts: Platform facts.

    Returns:
        Absolute target path, or None if the ``when`` condition is false.

    Raises:
        ConditionError: If ``when`` is malformed.
        ConflictError: If a target map has no entry for this platform.
    """
    if dotfile.when and not condition.evaluate(dotfile.when, facts):
        return None

    target = dotfile.target
    if isinstance(target, TargetMap):
        selected = target.for_os(facts.os)
        if not selected:
            raise ConflictError(
                f"no target for platform {facts.os!r} in dotfile {dotfile.source}",
                subject=dotfile.source,
                hint="Add a 'default' entry to the target map.",
            )
        target = selected

    return expand_home(target, facts.home)


def resolve_dotfiles(
    bundles: list[Bundle],
    facts: Platform,
    paths: RepoPaths,
) -> list[ResolvedDotfile]:
    """Resolve every active dotfile across ``bundles``, in bundle order."""
    resolved: list[ResolvedDotfile] = []
    for bundle in bundles:
        for dotfile in bundle.dotfiles:
            target = effective_target(dotfile, facts)
            if target is None:
                logger.debug("Skipping %s for %s: condition not met", dotfile.source, bundle.name)
                continue
            resolved.append(
                ResolvedDotfile(
                    app=bundle.name,
                    dotfile=dotfile,
                    source=paths.dotfile_source(dotfile.source),
                    target=target,
                )
            )
    return resolved


def check_target_collisions(resolved: list[ResolvedDotfile]) -> None:
    """Reject plans in which two dotfiles claim the same target.

    Raises:
        ConflictError: Naming the target and both claimants.
    """
    owners: dict[Path, ResolvedDotfile] = {}
    for item in resolved:
        first = owners.get(item.target)
        if first is not None:
            raise ConflictError(
                f"target {item.target} is claimed by both {first.app}:{first.dotfile.source} "
                f"and {item.app}:{item.dotfile.source}",
                subject=str(item.target),
                hint="Give one of the dotfiles a different target or a 'when' condition.",
            )
        owners[item.target] = item
