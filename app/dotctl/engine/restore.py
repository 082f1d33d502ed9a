"""Stop managing dotfiles: replace symlinks with real copies.

Restore is the exit path. Every managed symlink of every local bundle is
replaced with a copy of its source, and the shell aliases are exported
to a standalone file so the user keeps them without dotctl. A shell rc
file that sources the init script is switched to the aliases file.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from dotctl.core.errors import DotctlError
from dotctl.core.loader import load_all_bundles, load_global_aliases
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform
from dotctl.core.resolver import resolve_dotfiles
from dotctl.engine.history import SnapshotStore
from dotctl.engine.linker import Linker
from dotctl.engine.lock import ApplyLock
from dotctl.shell.generator import ShellType, export_aliases
from dotctl.shell.injector import rc_file, restore_source_line

logger = logging.getLogger(__name__)

DEFAULT_ALIASES_FILE = "~/.aliases"


@dataclass(slots=True)
class RestoreResult:
    """Summary of a restore.

    Attributes:
        restored: Targets converted to plain copies.
        skipped: Targets that were not managed symlinks.
        failed: "<target>: <reason>" entries.
        aliases_file: Exported aliases file.
        rc_file: Shell rc file that was switched to the aliases file.
    """

    restored: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    aliases_file: Path | None = None
    rc_file: Path | None = None


def restore_all(paths: RepoPaths, platform: Platform, aliases_file: Path) -> RestoreResult:
    """Replace every managed symlink with a copy and export aliases.

    A failure on one target is recorded and the rest continue.

    Args:
        paths: Repository paths.
        platform: Facts for this machine.
        aliases_file: Where to write the exported aliases.

    Raises:
        LockError: If an apply is running.
        SchemaError: If a bundle is invalid.
    """
    result = RestoreResult()
    with ApplyLock(paths.apply_lock):
        bundles = list(load_all_bundles(paths).values())
        linker = Linker(SnapshotStore(paths.history_dir))

        for item in resolve_dotfiles(bundles, platform, paths):
            try:
                if linker.restore(item):
                    result.restored.append(item.target)
                else:
                    result.skipped.append(item.target)
            except DotctlError as e:
                logger.warning("Restore of %s failed: %s", item.target, e)
                result.failed.append(f"{item.target}: {e.message}")

        aliases = load_global_aliases(paths).aliases
        result.aliases_file = export_aliases(bundles, aliases, aliases_file)

        rc = rc_file(ShellType.parse(platform.shell), platform.home)
        if rc is not None:
            try:
                if restore_source_line(rc, paths.init_script, result.aliases_file, platform.home):
                    result.rc_file = rc
            except DotctlError as e:
                logger.warning("Updating %s failed: %s", rc, e)
                result.failed.append(f"{rc}: {e.message}")

    logger.info(
        "Restored %d file(s), skipped %d, %d failure(s)",
        len(result.restored),
        len(result.skipped),
        len(result.failed),
    )
    return result
