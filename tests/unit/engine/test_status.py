"""Unit tests for dotfile status."""

import os
from pathlib import Path

import pytest
from dotctl.core.loader import save_state
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform
from dotctl.engine.status import LinkStatus, collect_status
from dotctl.models.state import State

from tests.conftest import RepoBuilder


@pytest.fixture
def applied(repo: RepoBuilder) -> RepoBuilder:
    for name in ("vimrc", "zshrc", "tmux.conf", "gitconfig"):
        repo.dotfile(f"base/{name}")
    repo.app(
        "base",
        dotfiles=[
            {"source": "base/vimrc", "target": "~/.vimrc"},
            {"source": "base/zshrc", "target": "~/.zshrc"},
            {"source": "base/tmux.conf", "target": "~/.tmux.conf"},
            {"source": "base/gitconfig", "target": "~/.gitconfig"},
        ],
    )
    repo.profile("base", apps=["base"])
    state = State()
    state.add_profile("base", ["base"])
    save_state(repo.paths, state)
    return repo


class TestCollectStatus:
    """Tests for collect_status."""

    def test_no_state(self, paths: RepoPaths, platform: Platform) -> None:
        """Nothing applied means nothing to report."""
        assert collect_status(paths, platform) == []

    def test_all_states(
        self, applied: RepoBuilder, paths: RepoPaths, platform: Platform, home: Path
    ) -> None:
        """Each target is classified by what is on disk."""
        os.symlink(paths.dotfile_source("base/vimrc"), home / ".vimrc")
        os.symlink(home / "elsewhere", home / ".zshrc")
        (home / ".gitconfig").write_text("mine\n")

        report = {entry.target.name: entry for entry in collect_status(paths, platform)}

        assert report[".vimrc"].status == LinkStatus.LINKED
        assert report[".zshrc"].status == LinkStatus.DRIFTED
        assert report[".zshrc"].actual == home / "elsewhere"
        assert report[".tmux.conf"].status == LinkStatus.MISSING
        assert report[".gitconfig"].status == LinkStatus.UNMANAGED
        assert report[".gitconfig"].status.value == "unmanaged-file"

    def test_explicit_profiles(
        self, repo: RepoBuilder, paths: RepoPaths, platform: Platform
    ) -> None:
        """Profiles can be named instead of read from state."""
        repo.dotfile("git/gitconfig")
        repo.app("git", dotfiles=[{"source": "git/gitconfig", "target": "~/.gitconfig"}])
        repo.profile("dev", apps=["git", "missing"])

        report = collect_status(paths, platform, profiles=["dev"])

        assert [(entry.app, entry.status) for entry in report] == [("git", LinkStatus.MISSING)]
