"""Content-addressed snapshot history.

Before a link replaces an existing target, the target is captured under
``.history/YYYY/MM/DD/<nanotime>_<hash>``:

- regular files are copied byte-for-byte,
- symlinks store their link target string as the payload,
- directories are stored as a gzip-compressed tarball.

The store is size-bounded: after each capture the oldest snapshots are
evicted until the total fits the configured budget again. The snapshot
that was just captured is never evicted.
"""

import hashlib
import logging
import os
import shutil
import stat
import tarfile
import time
from datetime import UTC, datetime
from pathlib import Path
from tempfile import NamedTemporaryFile

from dotctl.core.errors import FilesystemError
from dotctl.models.operation import SnapshotKind, SnapshotRecord

logger = logging.getLogger(__name__)

# Chunk size for streaming copies and hashing
_CHUNK = 1024 * 1024

# Hash prefix length used in snapshot file names
_HASH_PREFIX = 12


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 of a file's contents."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


class SnapshotStore:
    """Captures and restores point-in-time copies of link targets.

    Args:
        root: The ``.history`` directory.
        max_bytes: Size budget; 0 disables eviction.
    """

    def __init__(self, root: Path, max_bytes: int = 512 * 1024 * 1024) -> None:
        self.root = root
        self.max_bytes = max_bytes

    def capture(self, target: Path) -> SnapshotRecord | None:
        """Capture whatever ``target`` currently holds.

        Args:
            target: Path to capture (not followed if it is a symlink).

        Returns:
            SnapshotRecord, or None if the target does not exist.

        Raises:
            FilesystemError: If the target cannot be read or the snapshot written.
        """
        try:
            info = target.lstat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise FilesystemError(f"Cannot stat {target}: {e}", subject=str(target)) from e

        captured_at = datetime.now(UTC)
        day_dir = self.root / captured_at.strftime("%Y/%m/%d")

        try:
            day_dir.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(dir=day_dir, prefix=".capture-", delete=False) as tmp:
                tmp_path = Path(tmp.name)
            try:
                kind, mode, link_target = self._write_payload(target, info, tmp_path)
                checksum = sha256_file(tmp_path)
                final = self._unique_path(day_dir, f"{time.time_ns()}_{checksum[:_HASH_PREFIX]}")
                os.replace(tmp_path, final)
            finally:
                if tmp_path.exists():
                    tmp_path.unlink()
        except OSError as e:
            raise FilesystemError(
                f"Cannot capture snapshot of {target}: {e}", subject=str(target)
            ) from e

        record = SnapshotRecord(
            path=str(final),
            kind=kind,
            mode=mode,
            captured_at=captured_at,
            link_target=link_target,
            size=final.stat().st_size,
            checksum=checksum,
        )
        logger.info("Captured %s snapshot of %s at %s", kind.value, target, final)
        self.enforce_quota(protected=final)
        return record

    def _write_payload(
        self, target: Path, info: os.stat_result, dest: Path
    ) -> tuple[SnapshotKind, int, str]:
        if stat.S_ISLNK(info.st_mode):
            link_target = os.readlink(target)
            dest.write_bytes(os.fsencode(link_target))
            return SnapshotKind.SYMLINK, 0o777, link_target

        mode = stat.S_IMODE(info.st_mode)
        if stat.S_ISREG(info.st_mode):
            shutil.copyfile(target, dest)
            return SnapshotKind.FILE, mode, ""
        if stat.S_ISDIR(info.st_mode):
            with tarfile.open(dest, "w:gz") as archive:
                archive.add(target, arcname=".")
            return SnapshotKind.DIRECTORY, mode, ""

        msg = f"unsupported file type for snapshot: {target}"
        raise OSError(msg)

    @staticmethod
    def _unique_path(directory: Path, name: str) -> Path:
        candidate = directory / name
        counter = 1
        while candidate.exists():
            candidate = directory / f"{name}_{counter}"
            counter += 1
        return candidate

    def restore(self, record: SnapshotRecord, target: Path) -> None:
        """Put a snapshot back at ``target``, replacing whatever is there.

        Raises:
            FilesystemError: If the payload is missing or cannot be restored.
        """
        payload = Path(record.path)
        if not payload.exists():
            raise FilesystemError(
                f"snapshot not found: {payload}",
                subject=str(target),
                hint="The snapshot may have been evicted from history.",
            )

        try:
            remove_path(target)
            target.parent.mkdir(parents=True, exist_ok=True)
            if record.kind == SnapshotKind.SYMLINK:
                link_target = record.link_target or os.fsdecode(payload.read_bytes())
                os.symlink(link_target, target)
            elif record.kind == SnapshotKind.DIRECTORY:
                target.mkdir()
                with tarfile.open(payload, "r:gz") as archive:
                    archive.extractall(target, filter="tar")
                os.chmod(target, record.mode)
            else:
                shutil.copyfile(payload, target)
                os.chmod(target, record.mode)
        except OSError as e:
            raise FilesystemError(
                f"Cannot restore snapshot {payload} to {target}: {e}", subject=str(target)
            ) from e
        logger.info("Restored %s from snapshot %s", target, payload)

    def matches(self, record: SnapshotRecord, target: Path) -> bool:
        """Check whether ``target`` already holds the snapshot's content and mode."""
        try:
            info = target.lstat()
        except OSError:
            return False

        if record.kind == SnapshotKind.SYMLINK:
            return stat.S_ISLNK(info.st_mode) and os.readlink(target) == record.link_target
        if record.kind == SnapshotKind.FILE:
            if not stat.S_ISREG(info.st_mode) or stat.S_IMODE(info.st_mode) != record.mode:
                return False
            if record.checksum:
                return sha256_file(target) == record.checksum
            payload = Path(record.path)
            return payload.exists() and payload.read_bytes() == target.read_bytes()
        # Directory contents are not compared
        return False

    def enforce_quota(self, protected: Path | None = None) -> list[Path]:
        """Evict the oldest snapshots until the store fits its budget.

        Args:
            protected: Snapshot that must not be evicted.

        Returns:
            Paths that were evicted.

        Raises:
            FilesystemError: If an eviction fails.
        """
        if self.max_bytes <= 0 or not self.root.exists():
            return []

        items: list[tuple[float, Path, int]] = []
        total = 0
        for path in self.root.rglob("*"):
            if not path.is_file() or path.name.startswith(".capture-"):
                continue
            info = path.stat()
            items.append((info.st_mtime, path, info.st_size))
            total += info.st_size

        if total <= self.max_bytes:
            return []

        evicted: list[Path] = []
        for _mtime, path, size in sorted(items, key=lambda item: (item[0], str(item[1]))):
            if total <= self.max_bytes:
                break
            if protected is not None and path == protected:
                continue
            try:
                path.unlink()
            except OSError as e:
                raise FilesystemError(
                    f"Cannot evict old snapshot {path}: {e}", subject=str(path)
                ) from e
            total -= size
            evicted.append(path)
            self._prune_empty_dirs(path.parent)

        if evicted:
            logger.warning("Evicted %d old snapshot(s) to stay within history budget", len(evicted))
        return evicted

    def _prune_empty_dirs(self, directory: Path) -> None:
        while directory != self.root and self.root in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                return
            directory = directory.parent

    def list_snapshots(self) -> list[Path]:
        """All snapshot payloads, oldest first."""
        if not self.root.exists():
            return []
        files = [p for p in self.root.rglob("*") if p.is_file() and not p.name.startswith(".")]
        return sorted(files, key=lambda p: (p.stat().st_mtime, str(p)))


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree if it exists."""
    try:
        info = path.lstat()
    except FileNotFoundError:
        return
    if stat.S_ISDIR(info.st_mode):
        shutil.rmtree(path)
    else:
        path.unlink()
