"""Unit tests for tracking existing files."""

import os
from pathlib import Path

import pytest
from dotctl.core.errors import ConflictError, FilesystemError, LockError
from dotctl.core.loader import load_local_bundle
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform
from dotctl.engine.linker import points_to
from dotctl.engine.track import track

from tests.conftest import RepoBuilder


class TestTrack:
    """Tests for track."""

    def test_track_new_app(self, paths: RepoPaths, platform: Platform, home: Path) -> None:
        """The file is copied in, declared and replaced with a symlink."""
        target = home / ".config" / "nvim" / "init.lua"
        target.parent.mkdir(parents=True)
        target.write_text("vim.o.number = true\n")

        result = track(paths, platform, target, "neovim")

        dest = paths.dotfile_source("neovim/.config/nvim/init.lua")
        assert result.bundle_created
        assert result.source == "neovim/.config/nvim/init.lua"
        assert result.target == "~/.config/nvim/init.lua"
        assert dest.read_text() == "vim.o.number = true\n"
        assert points_to(target, dest)

        bundle = load_local_bundle(paths, "neovim")
        assert bundle is not None
        assert [d.target for d in bundle.dotfiles] == ["~/.config/nvim/init.lua"]
        assert not paths.apply_lock.exists()

    def test_existing_app_keeps_fields(
        self, repo: RepoBuilder, paths: RepoPaths, platform: Platform, home: Path
    ) -> None:
        """Tracking into an existing bundle appends a dotfile."""
        repo.app("git", package={"apt": "git"})
        (home / ".gitconfig").write_text("[user]\n")

        result = track(paths, platform, home / ".gitconfig", "git")

        bundle = load_local_bundle(paths, "git")
        assert not result.bundle_created
        assert bundle is not None
        assert bundle.package is not None
        assert [d.source for d in bundle.dotfiles] == ["git/.gitconfig"]

    def test_secret_is_gitignored(
        self, paths: RepoPaths, platform: Platform, home: Path
    ) -> None:
        """Secret files are added to .gitignore."""
        (home / ".netrc").write_text("machine x\n")

        track(paths, platform, home / ".netrc", "net", secret=True)

        assert "dotfiles/net/.netrc" in paths.gitignore_file.read_text()
        bundle = load_local_bundle(paths, "net")
        assert bundle is not None
        assert bundle.dotfiles[0].secret

    def test_missing_path(self, paths: RepoPaths, platform: Platform, home: Path) -> None:
        with pytest.raises(FilesystemError, match="path not found"):
            track(paths, platform, home / ".nothing", "x")

    def test_outside_home(self, paths: RepoPaths, platform: Platform, tmp_path: Path) -> None:
        """Files outside home are refused."""
        outside = tmp_path / "etc-hosts"
        outside.write_text("127.0.0.1 localhost\n")

        with pytest.raises(FilesystemError, match="outside the home directory"):
            track(paths, platform, outside, "hosts")

    def test_symlink_refused(self, paths: RepoPaths, platform: Platform, home: Path) -> None:
        """Symlinks are not tracked, and nothing is copied."""
        (home / "real").write_text("x")
        os.symlink(home / "real", home / ".link")

        with pytest.raises(ConflictError, match="is a symlink"):
            track(paths, platform, home / ".link", "x")

        assert not paths.dotfiles_dir.exists()

    def test_destination_exists(
        self, repo: RepoBuilder, paths: RepoPaths, platform: Platform, home: Path
    ) -> None:
        """An existing repository copy is never overwritten."""
        repo.dotfile("git/.gitconfig", "tracked\n")
        (home / ".gitconfig").write_text("local\n")

        with pytest.raises(ConflictError, match="already exists in the repository"):
            track(paths, platform, home / ".gitconfig", "git")

        assert (home / ".gitconfig").read_text() == "local\n"
        assert paths.dotfile_source("git/.gitconfig").read_text() == "tracked\n"

    def test_locked(self, paths: RepoPaths, platform: Platform, home: Path) -> None:
        """Track refuses to run during an apply."""
        (home / ".vimrc").write_text("set nu\n")
        paths.apply_lock.parent.mkdir()
        paths.apply_lock.write_text("pid=1\n")

        with pytest.raises(LockError):
            track(paths, platform, home / ".vimrc", "vim")

        assert not (home / ".vimrc").is_symlink()
