"""Operation log records and snapshot metadata.

Each apply writes a JSON array of Operation records to
``.operations/<YYYYMMDD-HHMMSS>.json``. Rollback reads that array back and
reverses it. Snapshot metadata travels inside ``link`` records as flat
string details.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class OperationType(str, Enum):
    """Type of operation recorded in an apply log.

    Attributes:
        PACKAGE_INSTALL: A package was installed (or found installed).
        LINK: A dotfile symlink was created or verified.
        HOOK_RUN: An apply hook ran.
        SHELL_GENERATE: The shell init script was regenerated.
    """

    PACKAGE_INSTALL = "package_install"
    LINK = "link"
    HOOK_RUN = "hook_run"
    SHELL_GENERATE = "shell_generate"


class SnapshotKind(str, Enum):
    """What a snapshot captured."""

    FILE = "file"
    SYMLINK = "symlink"
    DIRECTORY = "directory"


def format_timestamp(moment: datetime) -> str:
    """Format a UTC timestamp as RFC 3339 with nanosecond precision.

    Python datetimes carry microseconds, so the last three digits are zero.
    """
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond:06d}000Z"


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp written by format_timestamp (or any ISO 8601 string).

    Raises:
        ValueError: If the value is not a timestamp.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Trim sub-microsecond digits, which fromisoformat rejects
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        for char in rest:
            if not char.isdigit():
                break
            digits += char
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest[len(digits):]}"
    return datetime.fromisoformat(text)


@dataclass(frozen=True, slots=True)
class Operation:
    """Single immutable record in an apply log.

    Attributes:
        type: What kind of operation this was.
        target: Path or identifier the operation acted on.
        timestamp: When the operation completed (RFC 3339).
        details: Free-form string details.
    """

    type: OperationType
    target: str
    timestamp: str = field(default_factory=lambda: format_timestamp(datetime.now(UTC)))
    details: dict[str, str] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        if not self.target:
            msg = "Operation target cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "target": self.target,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Operation":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If the type is unknown.
        """
        details = data.get("details") or {}
        return cls(
            type=OperationType(data["type"]),
            target=data["target"],
            timestamp=data.get("timestamp", ""),
            details={str(k): str(v) for k, v in details.items()},
        )

    def detail(self, key: str) -> str:
        """Return detail ``key`` or an empty string."""
        return self.details.get(key, "")


@dataclass(frozen=True, slots=True)
class SnapshotRecord:
    """Metadata for one captured snapshot.

    Attributes:
        path: Absolute path of the snapshot payload under ``.history``.
        kind: What the target was when captured.
        mode: POSIX permission bits of the original target.
        captured_at: Capture time.
        link_target: Symlink target string (symlinks only).
        size: Payload size in bytes.
        checksum: SHA-256 of the payload.
    """

    path: str
    kind: SnapshotKind
    mode: int
    captured_at: datetime
    link_target: str = ""
    size: int = 0
    checksum: str = ""

    def to_details(self) -> dict[str, str]:
        """Flatten into ``snapshot_*`` keys for a link operation."""
        details = {
            "snapshot_path": self.path,
            "snapshot_kind": self.kind.value,
            "snapshot_mode": oct(self.mode),
            "snapshot_captured_at": format_timestamp(self.captured_at),
        }
        if self.link_target:
            details["snapshot_link_target"] = self.link_target
        if self.checksum:
            details["snapshot_checksum"] = self.checksum
        return details

    @classmethod
    def from_details(cls, details: dict[str, str]) -> "SnapshotRecord | None":
        """Rebuild a record from link operation details.

        Returns:
            SnapshotRecord, or None if the operation captured no snapshot.

        Raises:
            ValueError: If the snapshot fields are malformed.
        """
        path = details.get("snapshot_path", "")
        if not path:
            return None
        mode_text = details.get("snapshot_mode", "")
        captured = details.get("snapshot_captured_at", "")
        return cls(
            path=path,
            kind=SnapshotKind(details.get("snapshot_kind", SnapshotKind.FILE.value)),
            mode=int(mode_text, 8) if mode_text else 0o644,
            captured_at=parse_timestamp(captured) if captured else datetime.now(UTC),
            link_target=details.get("snapshot_link_target", ""),
            checksum=details.get("snapshot_checksum", ""),
        )
