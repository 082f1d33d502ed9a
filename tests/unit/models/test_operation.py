"""Unit tests for operation records and state."""

from datetime import UTC, datetime

import pytest
from dotctl.models.operation import (
    Operation,
    OperationType,
    SnapshotKind,
    SnapshotRecord,
    format_timestamp,
    parse_timestamp,
)
from dotctl.models.state import State


class TestTimestamps:
    """Tests for RFC 3339 timestamp helpers."""

    def test_format_has_nanoseconds(self) -> None:
        """Timestamps carry nine fractional digits and a Z suffix."""
        moment = datetime(2026, 3, 4, 5, 6, 7, 123456, tzinfo=UTC)

        assert format_timestamp(moment) == "2026-03-04T05:06:07.123456000Z"

    def test_parse_trims_nanoseconds(self) -> None:
        """Nanosecond timestamps parse back to microseconds."""
        parsed = parse_timestamp("2026-03-04T05:06:07.123456789Z")

        assert parsed == datetime(2026, 3, 4, 5, 6, 7, 123456, tzinfo=UTC)

    def test_parse_rejects_garbage(self) -> None:
        """Non-timestamps raise ValueError."""
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestOperation:
    """Tests for Operation."""

    def test_dict_roundtrip(self) -> None:
        """to_dict/from_dict preserve every field."""
        op = Operation(
            type=OperationType.LINK,
            target="/home/me/.gitconfig",
            details={"source": "/repo/dotfiles/git/.gitconfig"},
        )

        data = op.to_dict()

        assert data["type"] == "link"
        assert Operation.from_dict(data) == op

    def test_details_stringified(self) -> None:
        """Non-string details from disk become strings."""
        op = Operation.from_dict({"type": "hook_run", "target": "git", "details": {"n": 1}})

        assert op.details == {"n": "1"}
        assert op.detail("missing") == ""

    def test_empty_target_rejected(self) -> None:
        """Operations need a target."""
        with pytest.raises(ValueError, match="target cannot be empty"):
            Operation(type=OperationType.LINK, target="")

    def test_unknown_type_rejected(self) -> None:
        """Unknown types raise ValueError."""
        with pytest.raises(ValueError):
            Operation.from_dict({"type": "explode", "target": "x"})


class TestSnapshotRecord:
    """Tests for snapshot detail flattening."""

    def test_details_roundtrip(self) -> None:
        """Snapshot metadata survives flattening into link details."""
        record = SnapshotRecord(
            path="/repo/.history/20260101/abc",
            kind=SnapshotKind.SYMLINK,
            mode=0o755,
            captured_at=datetime(2026, 1, 1, tzinfo=UTC),
            link_target="/elsewhere",
            checksum="deadbeef",
        )

        details = record.to_details()

        assert details["snapshot_mode"] == "0o755"
        assert SnapshotRecord.from_details(details) == record

    def test_no_snapshot(self) -> None:
        """Link operations without snapshot_path have no record."""
        assert SnapshotRecord.from_details({"source": "x"}) is None


class TestState:
    """Tests for State."""

    def test_add_profile_replaces_in_place(self) -> None:
        """Re-applying a profile updates its entry without reordering."""
        state = State()
        state.add_profile("base", ["git"], when=datetime(2026, 1, 1, tzinfo=UTC))
        state.add_profile("work", ["kubectl", "git"], when=datetime(2026, 1, 2, tzinfo=UTC))
        state.add_profile("base", ["git", "zsh"], when=datetime(2026, 1, 3, tzinfo=UTC))

        assert state.profile_names == ["base", "work"]
        assert state.app_names == ["git", "zsh", "kubectl"]
        assert state.last_applied == datetime(2026, 1, 3, tzinfo=UTC)
