"""Bring an existing file under management.

Tracking copies a file or directory from the home tree into
``dotfiles/<app>/<path relative to home>``, declares it in the app's
bundle and replaces the original with a symlink to the copy.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from dotctl.core.errors import ConflictError, FilesystemError
from dotctl.core.loader import load_local_bundle, save_bundle
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform
from dotctl.engine.history import remove_path
from dotctl.engine.linker import points_to
from dotctl.engine.lock import ApplyLock
from dotctl.library.manager import RecipeLibrary
from dotctl.models.bundle import Bundle, Dotfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrackResult:
    """What ``track`` did.

    Attributes:
        app: Bundle the file was added to.
        source: Repo-relative source ("<app>/<relpath>").
        target: Declared target ("~/<relpath>").
        bundle_created: Whether a new bundle file was written.
    """

    app: str
    source: str
    target: str
    bundle_created: bool


def _ignore_secret(paths: RepoPaths, source: str) -> None:
    entry = f"dotfiles/{source}"
    gitignore = paths.gitignore_file
    lines = gitignore.read_text(encoding="utf-8").splitlines() if gitignore.exists() else []
    if entry in lines:
        return
    lines.append(entry)
    gitignore.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("Added %s to %s", entry, gitignore)


def _copy(src: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    if src.is_dir():
        shutil.copytree(src, dest, symlinks=True)
    else:
        shutil.copy2(src, dest)


def track(
    paths: RepoPaths,
    platform: Platform,
    path: Path,
    app: str,
    *,
    secret: bool = False,
    library: RecipeLibrary | None = None,
) -> TrackResult:
    """Track ``path`` as a dotfile of ``app``.

    Args:
        paths: Repository paths.
        platform: Facts for this machine (home directory).
        path: File or directory to track.
        app: Bundle that will own the dotfile (created if missing).
        secret: Keep the copy out of git.
        library: Recipe used as the starting bundle when ``apps/<app>.yaml``
            does not exist yet.

    Returns:
        TrackResult describing the new dotfile.

    Raises:
        LockError: If an apply is running.
        FilesystemError: If the path is missing, outside home, or copying fails.
        ConflictError: If the path is already managed.
    """
    target = Path(os.path.abspath(os.path.expanduser(path)))
    home = Path(os.path.abspath(platform.home))

    if not target.exists() and not target.is_symlink():
        raise FilesystemError(f"path not found: {target}", subject=str(target))
    if target.is_symlink():
        raise ConflictError(
            f"{target} is a symlink; track the file it points to instead",
            subject=str(target),
        )
    try:
        relative = target.relative_to(home)
    except ValueError as e:
        raise FilesystemError(
            f"{target} is outside the home directory {home}",
            subject=str(target),
            hint="Only files under your home directory can be tracked.",
        ) from e

    source = f"{app}/{relative.as_posix()}"
    declared = f"~/{relative.as_posix()}"
    dest = paths.dotfile_source(source)

    with ApplyLock(paths.apply_lock):
        if dest.exists() or dest.is_symlink():
            raise ConflictError(
                f"{dest} already exists in the repository",
                subject=source,
                hint=f"The file may already be tracked; check apps/{app}.yaml.",
            )

        bundle = load_local_bundle(paths, app)
        created = bundle is None
        if bundle is None:
            recipe = library.get(app) if library is not None else None
            bundle = recipe if recipe is not None else Bundle(name=app)
        if bundle.has_dotfile_source(source):
            raise ConflictError(f"{app} already declares {source}", subject=source)

        try:
            _copy(target, dest)
        except OSError as e:
            raise FilesystemError(
                f"Cannot copy {target} to {dest}: {e}", subject=str(target)
            ) from e

        bundle.dotfiles.append(Dotfile(source=source, target=declared, secret=secret))
        save_bundle(paths, bundle)
        if secret:
            try:
                _ignore_secret(paths, source)
            except OSError as e:
                raise FilesystemError(
                    f"Cannot update {paths.gitignore_file}: {e}", subject=str(paths.gitignore_file)
                ) from e

        try:
            remove_path(target)
            os.symlink(dest, target)
        except OSError as e:
            raise FilesystemError(
                f"Cannot replace {target} with a symlink: {e}",
                subject=str(target),
                hint=f"The copy is safe at {dest}.",
            ) from e
        if not points_to(target, dest):
            raise FilesystemError(f"link verification failed for {target}", subject=str(target))

    logger.info("Tracked %s as %s in %s", target, source, app)
    return TrackResult(app=app, source=source, target=declared, bundle_created=created)
