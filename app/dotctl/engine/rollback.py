"""Rollback of apply runs from their operation logs.

Rollback walks an operation log in reverse order:

- ``link`` records with a snapshot restore it over the target,
- ``link`` records without a snapshot remove the symlink, but only if it
  still points at the recorded source,
- ``package_install``, ``hook_run`` and ``shell_generate`` records are
  advisory only and produce a message for the user.

A failure on one target is recorded and the walk continues.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from dotctl.core.errors import DotctlError
from dotctl.core.paths import RepoPaths
from dotctl.engine.history import SnapshotStore
from dotctl.engine.linker import points_to
from dotctl.engine.oplog import latest_log, list_logs, load_log
from dotctl.models.operation import Operation, OperationType, SnapshotRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SnapshotCandidate:
    """A historical snapshot available for one target.

    Attributes:
        target: Target path the snapshot was taken of.
        record: Snapshot metadata.
        log_path: Operation log that recorded it.
        index: Position of the link operation in that log.
    """

    target: str
    record: SnapshotRecord
    log_path: Path
    index: int


@dataclass(slots=True)
class RollbackResult:
    """Summary of a rollback.

    Attributes:
        log_path: Log that was rolled back (None for single-target restores).
        restored: Targets restored from a snapshot.
        removed: Managed symlinks removed.
        failed: "<target>: <reason>" entries.
        advisories: Messages for operations that are not reversed automatically.
    """

    log_path: Path | None = None
    restored: int = 0
    removed: int = 0
    failed: list[str] = field(default_factory=list)
    advisories: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


# Picks one of several snapshots for a target; None keeps the logged one
SnapshotSelector = Callable[[str, list[SnapshotCandidate]], SnapshotCandidate | None]


def find_snapshot_candidates(operations_dir: Path, target: str) -> list[SnapshotCandidate]:
    """Collect every snapshot recorded for ``target`` across all logs.

    Unreadable logs are skipped.

    Returns:
        Candidates, newest capture first.
    """
    candidates: list[SnapshotCandidate] = []
    for log_path in list_logs(operations_dir):
        try:
            operations = load_log(log_path)
        except DotctlError as e:
            logger.warning("Skipping unreadable operation log %s: %s", log_path, e)
            continue
        for index, operation in enumerate(operations):
            if operation.type != OperationType.LINK or operation.target != target:
                continue
            try:
                record = SnapshotRecord.from_details(operation.details)
            except ValueError as e:
                logger.warning("Skipping malformed snapshot in %s: %s", log_path, e)
                continue
            if record is not None:
                candidates.append(SnapshotCandidate(target, record, log_path, index))

    candidates.sort(key=lambda c: c.record.captured_at, reverse=True)
    return candidates


class Rollback:
    """Reverses operation logs.

    Args:
        paths: Repository paths.
        store: Snapshot store used for restores.
        selector: Chooses among multiple snapshots for a target
            (``choose-snapshot``); None always uses the logged snapshot.
    """

    def __init__(
        self,
        paths: RepoPaths,
        store: SnapshotStore,
        selector: SnapshotSelector | None = None,
    ) -> None:
        self.paths = paths
        self.store = store
        self.selector = selector

    def rollback_latest(self) -> RollbackResult | None:
        """Roll back the most recent apply.

        Returns:
            RollbackResult, or None if there is nothing to roll back.
        """
        log_path = latest_log(self.paths.operations_dir)
        if log_path is None:
            logger.info("No operation logs found in %s", self.paths.operations_dir)
            return None
        return self.rollback_log(log_path)

    def rollback_log(self, log_path: Path) -> RollbackResult:
        """Roll back the operations recorded in ``log_path``.

        Raises:
            FilesystemError: If the log cannot be read.
            SchemaError: If the log is malformed.
        """
        operations = load_log(log_path)
        result = self.rollback_operations(operations)
        result.log_path = log_path
        return result

    def rollback_operations(self, operations: list[Operation]) -> RollbackResult:
        """Reverse ``operations`` in reverse order."""
        result = RollbackResult()
        for operation in reversed(operations):
            if operation.type == OperationType.LINK:
                self._rollback_link(operation, result)
            else:
                result.advisories.append(_advisory(operation))
        return result

    def _rollback_link(self, operation: Operation, result: RollbackResult) -> None:
        target = Path(operation.target)
        try:
            record = SnapshotRecord.from_details(operation.details)
        except ValueError as e:
            result.failed.append(f"{target}: malformed snapshot details ({e})")
            return

        try:
            if record is None:
                if self._remove_managed_link(target, operation.detail("source")):
                    result.removed += 1
                return

            record = self._select(operation.target, record)
            if self.store.matches(record, target):
                logger.info("%s already matches its snapshot", target)
            else:
                self.store.restore(record, target)
            result.restored += 1
        except DotctlError as e:
            logger.warning("Rollback of %s failed: %s", target, e)
            result.failed.append(f"{target}: {e.message}")
        except OSError as e:
            logger.warning("Rollback of %s failed: %s", target, e)
            result.failed.append(f"{target}: {e}")

    def _select(self, target: str, logged: SnapshotRecord) -> SnapshotRecord:
        if self.selector is None:
            return logged
        candidates = find_snapshot_candidates(self.paths.operations_dir, target)
        if len(candidates) <= 1:
            return logged
        chosen = self.selector(target, candidates)
        return chosen.record if chosen is not None else logged

    @staticmethod
    def _remove_managed_link(target: Path, source: str) -> bool:
        """Unlink ``target`` if it is still our symlink. Returns True if removed."""
        if not target.is_symlink():
            return False
        if source and not points_to(target, Path(source)):
            logger.info("Leaving %s: it no longer points at %s", target, source)
            return False
        target.unlink()
        logger.info("Removed symlink %s", target)
        return True

    def restore_target(self, target: str) -> RollbackResult:
        """Restore a single target from its snapshot history.

        Uses the newest snapshot unless a selector picks another one.
        """
        result = RollbackResult()
        candidates = find_snapshot_candidates(self.paths.operations_dir, target)
        if not candidates:
            result.failed.append(f"{target}: no snapshots recorded")
            return result

        chosen = candidates[0]
        if self.selector is not None and len(candidates) > 1:
            chosen = self.selector(target, candidates) or chosen
        try:
            self.store.restore(chosen.record, Path(target))
            result.restored += 1
        except DotctlError as e:
            result.failed.append(f"{target}: {e.message}")
        return result


def _advisory(operation: Operation) -> str:
    app = operation.detail("app")
    if operation.type == OperationType.PACKAGE_INSTALL:
        manager = operation.detail("manager")
        return (
            f"package {operation.target} was installed via {manager} for {app}; "
            "it is not uninstalled automatically"
        )
    if operation.type == OperationType.HOOK_RUN:
        return f"hook '{operation.detail('run')}' ran for {app}; its effects are not reversed"
    return f"shell init {operation.target} was regenerated; run apply to refresh it"


def describe_candidate(candidate: SnapshotCandidate) -> str:
    """One-line description of a snapshot candidate for selection menus."""
    captured = candidate.record.captured_at.astimezone(UTC)
    age = datetime.now(UTC) - captured
    return (
        f"{captured:%Y-%m-%d %H:%M:%S} UTC ({int(age.total_seconds() // 60)} min ago) "
        f"{candidate.record.kind.value} from {candidate.log_path.name}"
    )
