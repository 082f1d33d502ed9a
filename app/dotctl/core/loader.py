"""YAML file I/O for repository documents.

Every document is read with ``yaml.safe_load``, checked for its ``kind``
header and validated with its Pydantic model. Writes go through a
temporary file in the target directory followed by ``os.replace``.

Optional documents (config, state, global aliases) load as defaults when
missing; bundles and profiles are required.
"""

import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from dotctl.core.errors import FilesystemError, SchemaError
from dotctl.core.paths import RepoPaths
from dotctl.core.schema import validate_kind
from dotctl.models.aliases import GlobalAliases
from dotctl.models.bundle import Bundle
from dotctl.models.config import Config
from dotctl.models.profile import Profile
from dotctl.models.state import State

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def read_yaml(path: Path) -> Any:
    """Read and parse a YAML file.

    Args:
        path: File to read.

    Returns:
        Parsed document (None for an empty file).

    Raises:
        FilesystemError: If the file cannot be read.
        SchemaError: If the YAML syntax is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Failed to read {path}: {e}", subject=str(path)) from e

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML in {path}: {e}", subject=str(path)) from e


def write_yaml(path: Path, data: Any) -> Path:
    """Write a YAML document atomically.

    Args:
        path: Destination file.
        data: Plain data (dicts, lists, scalars).

    Returns:
        The path written.

    Raises:
        FilesystemError: If the file cannot be written.
    """
    text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            f.write(text)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise FilesystemError(f"Failed to write {path}: {e}", subject=str(path)) from e

    return path


def parse_document(data: Any, model: type[ModelT], kind_type: str, path: Path | None) -> ModelT:
    """Validate parsed YAML against a kind header and a model.

    Args:
        data: Parsed YAML document.
        model: Pydantic model to validate with.
        kind_type: Expected kind type ("App", "Profile", ...).
        path: Source file, for error messages.

    Raises:
        SchemaError: If the kind or content is invalid.
    """
    validate_kind(data, kind_type, path)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        where = f" in {path}" if path is not None else ""
        raise SchemaError(
            f"Invalid {kind_type} document{where}: {_summarize(e)}",
            subject=str(path) if path is not None else None,
        ) from e


def dump_document(model: BaseModel) -> dict[str, Any]:
    """Convert a model into plain data with ``kind`` first and defaults omitted."""
    data = model.model_dump(mode="json", by_alias=True, exclude_defaults=True)
    data.pop("kind", None)
    return {"kind": getattr(model, "kind"), **data}


def _load_required(path: Path, model: type[ModelT], kind_type: str) -> ModelT:
    data = read_yaml(path)
    return parse_document(data, model, kind_type, path)


def _load_optional(path: Path, model: type[ModelT], kind_type: str) -> ModelT:
    if not path.exists():
        logger.debug("%s not found, using defaults", path)
        return model()
    data = read_yaml(path)
    if data is None:
        return model()
    return parse_document(data, model, kind_type, path)


def _summarize(error: ValidationError) -> str:
    """Render a validation error as one line per problem."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


# Bundles


def load_bundle(path: Path) -> Bundle:
    """Load an app bundle from ``path``.

    Raises:
        FilesystemError: If the file cannot be read.
        SchemaError: If the document is invalid.
    """
    bundle = _load_required(path, Bundle, "App")
    if bundle.name != path.stem:
        logger.debug("Bundle %s declared in %s", bundle.name, path)
    return bundle


def load_local_bundle(paths: RepoPaths, name: str) -> Bundle | None:
    """Load ``apps/<name>.yaml``; returns None if it does not exist."""
    path = paths.bundle_file(name)
    if not path.exists():
        return None
    return load_bundle(path)


def load_all_bundles(paths: RepoPaths) -> dict[str, Bundle]:
    """Load every bundle in ``apps/``, keyed by bundle name."""
    bundles: dict[str, Bundle] = {}
    if not paths.apps_dir.is_dir():
        return bundles
    for path in sorted(paths.apps_dir.glob("*.yaml")):
        bundle = load_bundle(path)
        bundles[bundle.name] = bundle
    return bundles


def save_bundle(paths: RepoPaths, bundle: Bundle) -> Path:
    """Write ``bundle`` to ``apps/<name>.yaml``."""
    return write_yaml(paths.bundle_file(bundle.name), dump_document(bundle))


# Profiles


def load_profile(path: Path) -> Profile:
    """Load a profile from ``path``."""
    return _load_required(path, Profile, "Profile")


def load_all_profiles(paths: RepoPaths) -> dict[str, Profile]:
    """Load every profile in ``profiles/``, keyed by profile name."""
    profiles: dict[str, Profile] = {}
    if not paths.profiles_dir.is_dir():
        return profiles
    for path in sorted(paths.profiles_dir.glob("*/profile.yaml")):
        profile = load_profile(path)
        profiles[profile.name] = profile
    return profiles


# Optional documents


def load_config(paths: RepoPaths) -> Config:
    """Load ``config.yaml``, falling back to defaults when absent."""
    return _load_optional(paths.config_file, Config, "Config")


def load_state(paths: RepoPaths) -> State:
    """Load ``state.yaml``; a missing file is an empty state."""
    return _load_optional(paths.state_file, State, "State")


def save_state(paths: RepoPaths, state: State) -> Path:
    return write_yaml(paths.state_file, dump_document(state))


def load_global_aliases(paths: RepoPaths) -> GlobalAliases:
    """Load ``aliases.yaml``; a missing file is an empty mapping."""
    return _load_optional(paths.aliases_file, GlobalAliases, "GlobalAliases")
