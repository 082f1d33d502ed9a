"""Apply engine: linking, snapshots, operation log, rollback and friends."""

from dotctl.engine.apply import ApplyEngine, ApplyOptions, ApplyPlan, ApplyResult
from dotctl.engine.history import SnapshotStore
from dotctl.engine.linker import LinkAction, Linker, LinkOutcome
from dotctl.engine.lock import ApplyLock
from dotctl.engine.oplog import OperationLog, latest_log, list_logs, load_log
from dotctl.engine.rollback import Rollback, RollbackResult, SnapshotCandidate
from dotctl.engine.status import DotfileStatus, LinkStatus, collect_status

__all__ = [
    "ApplyEngine",
    "ApplyLock",
    "ApplyOptions",
    "ApplyPlan",
    "ApplyResult",
    "DotfileStatus",
    "LinkAction",
    "LinkOutcome",
    "LinkStatus",
    "Linker",
    "OperationLog",
    "Rollback",
    "RollbackResult",
    "SnapshotCandidate",
    "SnapshotStore",
    "collect_status",
    "latest_log",
    "list_logs",
    "load_log",
]
