"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules: a fake
platform with its home under ``tmp_path``, a repository builder that
writes YAML documents, and an in-memory package manager.
"""

from pathlib import Path
from typing import Any

import pytest
import yaml
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform
from dotctl.packages.base import PackageManager


class FakeManager(PackageManager):
    """Package manager that records calls instead of running commands."""

    def __init__(self, name: str, installed: set[str] | None = None) -> None:
        self._name = name
        self.installed = set(installed or ())
        self.install_calls: list[str] = []
        self.uninstall_calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def install(self, package: str) -> None:
        self.install_calls.append(package)
        self.installed.add(package)

    def uninstall(self, package: str) -> None:
        self.uninstall_calls.append(package)
        self.installed.discard(package)

    def is_installed(self, package: str) -> bool:
        return package in self.installed

    def is_available(self) -> bool:
        return True


class RepoBuilder:
    """Writes repository documents under a temporary root."""

    def __init__(self, paths: RepoPaths) -> None:
        self.paths = paths

    def _write(self, path: Path, data: dict[str, Any]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    def app(self, name: str, **fields: Any) -> Path:
        return self._write(self.paths.bundle_file(name), {"kind": "App/v1", "name": name, **fields})

    def profile(self, name: str, **fields: Any) -> Path:
        return self._write(
            self.paths.profile_file(name), {"kind": "Profile/v1", "name": name, **fields}
        )

    def config(self, **fields: Any) -> Path:
        return self._write(self.paths.config_file, {"kind": "Config/v1", **fields})

    def aliases(self, aliases: dict[str, str]) -> Path:
        return self._write(
            self.paths.aliases_file, {"kind": "GlobalAliases/v1", "aliases": aliases}
        )

    def dotfile(self, source: str, content: str = "content\n") -> Path:
        path = self.paths.dotfile_source(source)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def platform(home: Path) -> Platform:
    """Linux (Ubuntu, amd64) platform facts with a temporary home."""
    return Platform(
        os="linux",
        distro="ubuntu",
        hostname="devbox",
        arch="amd64",
        home=home,
        shell="bash",
    )


@pytest.fixture
def macos(home: Path) -> Platform:
    """macOS platform facts with a temporary home."""
    return Platform(
        os="macos",
        distro="",
        hostname="laptop",
        arch="arm64",
        home=home,
        shell="zsh",
    )


@pytest.fixture
def paths(tmp_path: Path) -> RepoPaths:
    """Repository paths rooted in a temporary directory."""
    root = tmp_path / "repo"
    root.mkdir()
    return RepoPaths(root)


@pytest.fixture
def repo(paths: RepoPaths) -> RepoBuilder:
    """Builder for repository documents."""
    return RepoBuilder(paths)


@pytest.fixture
def fake_managers() -> dict[str, FakeManager]:
    """Available fake managers by name (apt and brew)."""
    return {"apt": FakeManager("apt"), "brew": FakeManager("brew")}


@pytest.fixture
def factory(fake_managers: dict[str, FakeManager]):
    """Manager factory returning the fake managers."""
    return fake_managers.get
