"""Append-only operation log for apply runs.

Each apply writes one log file ``.operations/<YYYYMMDD-HHMMSS>.json``
holding a JSON array of operations in completion order. A second log
started within the same second gets a ``_<n>`` suffix; logs sort by
(timestamp, suffix).

The file is created when the first operation is recorded and rewritten
atomically on every append, so a crash mid-apply leaves a valid log of
everything that completed.
"""

import json
import logging
import os
import re
from datetime import UTC, datetime
from pathlib import Path
from tempfile import NamedTemporaryFile

from dotctl.core.errors import FilesystemError, SchemaError
from dotctl.models.operation import Operation

logger = logging.getLogger(__name__)

_LOG_NAME = re.compile(r"^(\d{8}-\d{6})(?:_(\d+))?\.json$")


class OperationLog:
    """Journal of the operations performed by one apply.

    Args:
        directory: The ``.operations`` directory.
        started_at: Apply start time, used for the file name.
    """

    def __init__(self, directory: Path, started_at: datetime | None = None) -> None:
        self.directory = directory
        self.started_at = started_at if started_at is not None else datetime.now(UTC)
        self._operations: list[Operation] = []
        self._path: Path | None = None

    @property
    def path(self) -> Path | None:
        """Log file path, or None until the first operation is recorded."""
        return self._path

    @property
    def operations(self) -> list[Operation]:
        return list(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def record(self, operation: Operation) -> None:
        """Append an operation and flush the whole log to disk.

        Raises:
            FilesystemError: If the log cannot be written.
        """
        self._operations.append(operation)
        if self._path is None:
            self._path = self._reserve_path()
        self._flush(self._path)
        logger.debug("Logged %s %s", operation.type.value, operation.target)

    def _reserve_path(self) -> Path:
        stamp = self.started_at.astimezone(UTC).strftime("%Y%m%d-%H%M%S")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            counter = 0
            while True:
                name = f"{stamp}.json" if counter == 0 else f"{stamp}_{counter}.json"
                candidate = self.directory / name
                try:
                    with open(candidate, "x", encoding="utf-8") as f:
                        f.write("[]\n")
                except FileExistsError:
                    counter += 1
                    continue
                return candidate
        except OSError as e:
            raise FilesystemError(
                f"Cannot create operation log in {self.directory}: {e}",
                subject=str(self.directory),
            ) from e

    def _flush(self, path: Path) -> None:
        payload = json.dumps([op.to_dict() for op in self._operations], indent=2)

        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                f.write(payload + "\n")
            os.replace(str(tmp_path), str(path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise FilesystemError(
                f"Failed to write operation log {path}: {e}", subject=str(path)
            ) from e


def load_log(path: Path) -> list[Operation]:
    """Read an operation log.

    Raises:
        FilesystemError: If the file cannot be read.
        SchemaError: If the file is not a valid log.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Failed to read operation log {path}: {e}", subject=str(path)) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid operation log {path}: {e}", subject=str(path)) from e
    if not isinstance(data, list):
        raise SchemaError(f"Invalid operation log {path}: expected a JSON array", subject=str(path))

    try:
        return [Operation.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SchemaError(f"Invalid operation in {path}: {e}", subject=str(path)) from e


def _sort_key(path: Path) -> tuple[str, int]:
    match = _LOG_NAME.match(path.name)
    if match is None:
        return (path.stem, 0)
    return (match.group(1), int(match.group(2) or 0))


def list_logs(directory: Path) -> list[Path]:
    """All operation logs in ``directory``, oldest first."""
    if not directory.is_dir():
        return []
    logs = [p for p in directory.iterdir() if p.is_file() and _LOG_NAME.match(p.name)]
    return sorted(logs, key=_sort_key)


def latest_log(directory: Path) -> Path | None:
    """Most recent operation log, or None if there is none."""
    logs = list_logs(directory)
    return logs[-1] if logs else None
