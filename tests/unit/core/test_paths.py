"""Unit tests for repository path helpers."""

from pathlib import Path

import pytest
from dotctl.core.paths import RepoPaths, get_repo_dir, get_user_config_dir


class TestGetRepoDir:
    """Tests for get_repo_dir."""

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """DOTCTL_DIR wins over the default location."""
        monkeypatch.setenv("DOTCTL_DIR", str(tmp_path / "dots"))
        assert get_repo_dir() == tmp_path / "dots"

    def test_default_is_hidden_dir_in_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without DOTCTL_DIR the repository is ~/.dotctl."""
        monkeypatch.delenv("DOTCTL_DIR", raising=False)
        assert get_repo_dir() == Path.home() / ".dotctl"


class TestUserConfigDir:
    """Tests for get_user_config_dir."""

    def test_respects_xdg(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """XDG_CONFIG_HOME is honored."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_user_config_dir() == tmp_path / "dotctl"


class TestRepoPaths:
    """Tests for RepoPaths layout."""

    def test_layout(self, tmp_path: Path) -> None:
        """Well-known files live at fixed locations."""
        paths = RepoPaths(tmp_path)

        assert paths.config_file == tmp_path / "config.yaml"
        assert paths.state_file == tmp_path / "state.yaml"
        assert paths.aliases_file == tmp_path / "aliases.yaml"
        assert paths.apply_lock == tmp_path / ".locks" / "apply.lock"
        assert paths.operations_dir == tmp_path / ".operations"
        assert paths.history_dir == tmp_path / ".history"

    def test_document_paths(self, tmp_path: Path) -> None:
        """Bundles, profiles and dotfile sources map to their directories."""
        paths = RepoPaths(tmp_path)

        assert paths.bundle_file("git") == tmp_path / "apps" / "git.yaml"
        assert paths.profile_file("work") == tmp_path / "profiles" / "work" / "profile.yaml"
        expected = tmp_path / "dotfiles" / "git" / ".gitconfig"
        assert paths.dotfile_source("git/.gitconfig") == expected
