"""Versioned ``kind`` header handling.

Every YAML file carries a header of the form ``kind: <Type>/<version>``.
Only ``v1`` is supported for every type.
"""

from pathlib import Path
from typing import Any

from dotctl.core.errors import SchemaError

SUPPORTED_VERSION = "v1"


def make_kind(type_name: str) -> str:
    """Build the current kind header for a type (``App`` -> ``App/v1``)."""
    return f"{type_name}/{SUPPORTED_VERSION}"


def parse_kind(kind: str) -> tuple[str, str]:
    """Split a kind header into type and version.

    Args:
        kind: Header value such as "App/v1".

    Returns:
        Tuple of (type, version).

    Raises:
        SchemaError: If the header is not of the form <Type>/v<N>.
    """
    parts = kind.split("/")
    if len(parts) != 2:
        msg = f"invalid kind format: expected <Type>/<Version>, got {kind!r}"
        raise SchemaError(msg)
    type_name, version = parts
    if not type_name:
        raise SchemaError("invalid kind format: type cannot be empty")
    if not version.startswith("v"):
        msg = f"invalid version format: version must start with 'v', got {version!r}"
        raise SchemaError(msg)
    return type_name, version


def validate_kind(data: Any, expected_type: str, path: Path | None = None) -> None:
    """Check that loaded YAML data carries a supported kind header.

    Args:
        data: Parsed YAML document.
        expected_type: Required type name ("App", "Profile", ...).
        path: File the data came from, for error messages.

    Raises:
        SchemaError: On a missing, malformed, mismatched or unsupported kind.
    """
    where = f" in {path}" if path is not None else ""
    subject = str(path) if path is not None else None

    if not isinstance(data, dict):
        raise SchemaError(f"expected a mapping{where}", subject=subject)

    kind = data.get("kind")
    if not isinstance(kind, str) or not kind:
        raise SchemaError(
            f"missing kind header{where}",
            subject=subject,
            hint=f"Add 'kind: {make_kind(expected_type)}' at the top of the file.",
        )

    try:
        type_name, version = parse_kind(kind)
    except SchemaError as e:
        raise SchemaError(f"{e}{where}", subject=subject) from e

    if type_name != expected_type:
        msg = f"kind mismatch: expected type {expected_type!r}, got {type_name!r}{where}"
        raise SchemaError(msg, subject=subject)
    if version != SUPPORTED_VERSION:
        msg = (
            f"unsupported version {version!r} for type {type_name!r}{where} "
            f"(supported: {SUPPORTED_VERSION})"
        )
        raise SchemaError(msg, subject=subject)
