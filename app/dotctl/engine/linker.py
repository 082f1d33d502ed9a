"""Symlink creation with conflict strategies and snapshot history.

The Linker's contract: given a resolved dotfile and a conflict strategy,
leave a symlink at the target pointing at the source, or raise a precise
error. Whenever an existing target is replaced with a backup, a snapshot
is captured first and recorded in the link operation.

Strategies:
- ``error``: any existing target (even the correct symlink) is a conflict.
- ``backup_and_replace``: snapshot the existing target, then replace it.
  A target that already is the correct symlink is left alone.
- ``prompt``: ask the user to skip, back up and replace, or overwrite
  without a backup. Raises NonInteractiveStopError when non-interactive.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotctl.core.errors import ConflictError, FilesystemError
from dotctl.core.prompt import Prompter
from dotctl.core.resolver import ResolvedDotfile
from dotctl.engine.history import SnapshotStore, remove_path
from dotctl.engine.oplog import OperationLog
from dotctl.models.config import DotfileStrategy
from dotctl.models.operation import Operation, OperationType, SnapshotRecord

logger = logging.getLogger(__name__)

# Answers offered by the prompt strategy
PROMPT_SKIP = "skip"
PROMPT_BACKUP = "backup"
PROMPT_OVERWRITE = "overwrite"


class LinkAction(str, Enum):
    """What a link call did to the target."""

    CREATED = "created"
    UNCHANGED = "unchanged"
    REPLACED = "replaced"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class LinkOutcome:
    """Result of linking one dotfile.

    Attributes:
        target: Effective target path.
        source: Absolute source path.
        action: What happened to the target.
        snapshot: Snapshot of the replaced target, if one was captured.
    """

    target: Path
    source: Path
    action: LinkAction
    snapshot: SnapshotRecord | None = None


def link_destination(path: Path) -> Path | None:
    """Absolute destination of symlink ``path``, or None if it is not a symlink."""
    try:
        if not path.is_symlink():
            return None
        dest = os.readlink(path)
    except OSError:
        return None
    if not os.path.isabs(dest):
        dest = os.path.join(path.parent, dest)
    return Path(os.path.normpath(dest))


def points_to(target: Path, source: Path) -> bool:
    """Check whether ``target`` is a symlink to ``source``."""
    dest = link_destination(target)
    return dest is not None and dest == Path(os.path.normpath(os.path.abspath(source)))


class Linker:
    """Creates dotfile symlinks for one apply run.

    Args:
        store: Snapshot history for replaced targets.
        strategy: Conflict strategy for existing targets.
        prompter: Used by the ``prompt`` strategy.
        log: Operation log that receives a ``link`` record per link.
    """

    def __init__(
        self,
        store: SnapshotStore,
        strategy: DotfileStrategy = "backup_and_replace",
        prompter: Prompter | None = None,
        log: OperationLog | None = None,
    ) -> None:
        self.store = store
        self.strategy = strategy
        self.prompter = prompter if prompter is not None else Prompter(interactive=False)
        self.log = log

    def needs_decision(self, item: ResolvedDotfile) -> bool:
        """Whether linking ``item`` would ask the user under the prompt strategy."""
        return _exists(item.target) and not points_to(item.target, item.source)

    def link(self, item: ResolvedDotfile) -> LinkOutcome:
        """Link one resolved dotfile.

        Args:
            item: Dotfile with concrete source and target.

        Returns:
            LinkOutcome describing what happened.

        Raises:
            FilesystemError: If the source is missing or the filesystem fails.
            ConflictError: Under the ``error`` strategy when the target exists.
            NonInteractiveStopError: Under ``prompt`` without a terminal.
        """
        source = Path(os.path.abspath(item.source))
        target = item.target

        if not _exists(source):
            raise FilesystemError(
                f"source file not found: {source}",
                subject=item.app,
                hint=f"Add the file under dotfiles/ or fix 'source' in apps/{item.app}.yaml.",
            )
        if item.dotfile.secret:
            logger.warning("Linking secret file %s - ensure it is gitignored", target)

        outcome = self._place(item, source, target)
        if outcome.action != LinkAction.SKIPPED and not points_to(target, source):
            raise FilesystemError(
                f"link verification failed: {target} does not point to {source}",
                subject=str(target),
            )

        if outcome.action != LinkAction.SKIPPED and self.log is not None:
            self.log.record(self._operation(item, outcome))
        logger.info("%s %s -> %s", outcome.action.value.capitalize(), target, source)
        return outcome

    def _place(self, item: ResolvedDotfile, source: Path, target: Path) -> LinkOutcome:
        if not _exists(target):
            _make_link(source, target)
            return LinkOutcome(target, source, LinkAction.CREATED)

        if self.strategy == "error":
            raise ConflictError(
                f"target already exists: {target} (intended source: {source})",
                subject=str(target),
                hint="Move the file away, or set conflict_resolution.dotfiles "
                "to backup_and_replace.",
            )

        if points_to(target, source):
            return LinkOutcome(target, source, LinkAction.UNCHANGED)

        backup = True
        if self.strategy == "prompt":
            answer = self.prompter.choose(
                f"{target} already exists. Skip, back up and replace, or overwrite?",
                [PROMPT_SKIP, PROMPT_BACKUP, PROMPT_OVERWRITE],
                default=PROMPT_SKIP,
                subject=str(target),
            )
            if answer == PROMPT_SKIP:
                logger.info("Skipped %s at user request", target)
                return LinkOutcome(target, source, LinkAction.SKIPPED)
            backup = answer == PROMPT_BACKUP

        snapshot = self.store.capture(target) if backup else None
        try:
            remove_path(target)
        except OSError as e:
            raise FilesystemError(f"Cannot remove {target}: {e}", subject=str(target)) from e
        _make_link(source, target)
        return LinkOutcome(target, source, LinkAction.REPLACED, snapshot)

    @staticmethod
    def _operation(item: ResolvedDotfile, outcome: LinkOutcome) -> Operation:
        details = {
            "source": str(outcome.source),
            "source_rel": item.dotfile.source,
            "app": item.app,
            "action": outcome.action.value,
        }
        if outcome.snapshot is not None:
            details.update(outcome.snapshot.to_details())
        return Operation(type=OperationType.LINK, target=str(outcome.target), details=details)

    def restore(self, item: ResolvedDotfile) -> bool:
        """Replace a managed symlink with a real copy of its source.

        Targets that are not symlinks to the item's source are left alone.

        Returns:
            True if the target was converted to a copy.

        Raises:
            FilesystemError: If copying fails.
        """
        source = Path(os.path.abspath(item.source))
        target = item.target
        if not points_to(target, source):
            return False

        try:
            target.unlink()
            if source.is_dir():
                shutil.copytree(source, target, symlinks=True)
            else:
                shutil.copy2(source, target)
        except OSError as e:
            raise FilesystemError(
                f"Cannot restore {target} from {source}: {e}", subject=str(target)
            ) from e
        logger.info("Restored %s as a copy of %s", target, source)
        return True


def _exists(path: Path) -> bool:
    """True for any directory entry, including dangling symlinks."""
    try:
        path.lstat()
    except FileNotFoundError:
        return False
    return True


def _make_link(source: Path, target: Path) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(source, target)
    except OSError as e:
        raise FilesystemError(
            f"Cannot create symlink {target} -> {source}: {e}", subject=str(target)
        ) from e
