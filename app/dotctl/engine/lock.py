"""Single-writer lock for mutating commands.

The lock is a file at ``.locks/apply.lock`` created with O_CREAT|O_EXCL.
Acquisition never blocks: if the file exists, another run holds the lock.
"""

import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType

from dotctl.core.errors import FilesystemError, LockError

logger = logging.getLogger(__name__)


class ApplyLock:
    """Exclusive, non-blocking lock file.

    Use as a context manager::

        with ApplyLock(paths.apply_lock):
            ...

    Args:
        path: Lock file path.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Create the lock file.

        Raises:
            LockError: If the lock is already held.
            FilesystemError: If the lock file cannot be created.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as e:
            raise LockError(
                f"another apply operation is already in progress (lock file: {self.path})",
                subject=str(self.path),
                hint="Wait for it to finish, or remove the lock file if no dotctl "
                "process is running.",
            ) from e
        except OSError as e:
            raise FilesystemError(
                f"Cannot create lock file {self.path}: {e}", subject=str(self.path)
            ) from e

        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"pid={os.getpid()}\ncreated={datetime.now(UTC).isoformat()}\n")
        self._held = True
        logger.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        """Remove the lock file (and an empty lock directory)."""
        if not self._held:
            return
        self._held = False
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.warning("Lock file %s disappeared before release", self.path)
        if not any(self.path.parent.iterdir()):
            self.path.parent.rmdir()
        logger.debug("Released lock %s", self.path)

    def __enter__(self) -> "ApplyLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
