"""Repository validation.

Validation loads every document, parses every condition and resolves
every profile, collecting problems instead of stopping at the first one.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from dotctl.core import condition
from dotctl.core.errors import DotctlError
from dotctl.core.loader import (
    load_bundle,
    load_config,
    load_global_aliases,
    load_profile,
    load_state,
)
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform
from dotctl.core.resolver import resolve_apps, resolve_profiles
from dotctl.library.manager import RecipeLibrary
from dotctl.models.bundle import Bundle
from dotctl.models.profile import Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Issue:
    """One validation problem.

    Attributes:
        subject: File, app or profile the problem is about.
        message: What is wrong.
    """

    subject: str
    message: str


class _Collector:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.issues: list[Issue] = []

    def add(self, subject: str | Path, message: str) -> None:
        if isinstance(subject, Path):
            try:
                subject = str(subject.relative_to(self.root))
            except ValueError:
                subject = str(subject)
        issue = Issue(subject, message)
        if issue not in self.issues:
            self.issues.append(issue)

    def condition(self, subject: str, expression: str | None) -> None:
        if not expression:
            return
        try:
            condition.validate(expression)
        except DotctlError as e:
            self.add(subject, e.message)


def _check_bundle(bundle: Bundle, path: Path, paths: RepoPaths, issues: _Collector) -> None:
    if bundle.name != path.stem:
        issues.add(path, f"app name {bundle.name!r} does not match file name {path.stem!r}")
    for dotfile in bundle.dotfiles:
        issues.condition(bundle.name, dotfile.when)
        source = paths.dotfile_source(dotfile.source)
        if not source.exists() and not source.is_symlink():
            issues.add(bundle.name, f"source file not found: dotfiles/{dotfile.source}")
    for hook in bundle.apply_hooks:
        issues.condition(bundle.name, hook.when)


def validate_repo(
    paths: RepoPaths,
    platform: Platform,
    library: RecipeLibrary | None = None,
) -> list[Issue]:
    """Validate the whole repository.

    Args:
        paths: Repository paths.
        platform: Facts used to resolve conditional profile rules.
        library: Recipe library; apps it provides count as defined.

    Returns:
        Every issue found, in discovery order. Empty means valid.
    """
    issues = _Collector(paths.root)

    for loader in (load_config, load_state, load_global_aliases):
        try:
            loader(paths)
        except DotctlError as e:
            issues.add(e.subject or "repository", e.message)

    bundles: dict[str, Bundle] = {}
    if paths.apps_dir.is_dir():
        for path in sorted(paths.apps_dir.glob("*.yaml")):
            try:
                bundle = load_bundle(path)
            except DotctlError as e:
                issues.add(path, e.message)
                continue
            bundles[bundle.name] = bundle
            _check_bundle(bundle, path, paths, issues)

    def known_app(name: str) -> bool:
        return name in bundles or (library is not None and name in library)

    for bundle in bundles.values():
        for dependency in bundle.dependencies:
            if not known_app(dependency):
                issues.add(bundle.name, f"unknown dependency: {dependency}")
    try:
        resolve_apps(sorted(bundles), bundles, best_effort=True)
    except DotctlError as e:
        issues.add("apps", e.message)

    profiles: dict[str, Profile] = {}
    if paths.profiles_dir.is_dir():
        for path in sorted(paths.profiles_dir.glob("*/profile.yaml")):
            try:
                profile = load_profile(path)
            except DotctlError as e:
                issues.add(path, e.message)
                continue
            profiles[profile.name] = profile

    for profile in profiles.values():
        for rule in profile.conditions:
            issues.condition(profile.name, rule.condition)
        for include in profile.includes:
            if include not in profiles:
                issues.add(profile.name, f"unknown include: {include}")
        for rule in profile.conditions:
            for app in rule.include_apps:
                if not known_app(app):
                    issues.add(profile.name, f"unknown app: {app}")
        for app in profile.apps:
            if not known_app(app):
                issues.add(profile.name, f"unknown app: {app}")
        try:
            resolve_profiles([profile.name], profiles, platform)
        except DotctlError as e:
            issues.add(profile.name, e.message)

    logger.info("Validation found %d issue(s)", len(issues.issues))
    return issues.issues
