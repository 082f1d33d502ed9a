"""Unit tests for the status, track, restore and validate commands."""

from pathlib import Path

from dotctl.cli.main import app
from dotctl.core.paths import RepoPaths
from typer.testing import CliRunner

from tests.conftest import RepoBuilder

runner = CliRunner()


class TestStatusCommand:
    """Tests for dotctl status."""

    def test_nothing_applied(self, cli_env: dict[str, str]) -> None:
        result = runner.invoke(app, ["status"], env=cli_env)

        assert result.exit_code == 0
        assert "No managed dotfiles" in result.output

    def test_after_apply(self, repo: RepoBuilder, home: Path, cli_env: dict[str, str]) -> None:
        """Linked and missing dotfiles are counted."""
        repo.dotfile("vim/vimrc")
        repo.dotfile("vim/gvimrc")
        repo.app(
            "vim",
            dotfiles=[
                {"source": "vim/vimrc", "target": "~/.vimrc"},
                {"source": "vim/gvimrc", "target": "~/.gvimrc"},
            ],
        )
        repo.profile("base", apps=["vim"])
        runner.invoke(app, ["apply", "base"], env=cli_env)
        (home / ".gvimrc").unlink()

        result = runner.invoke(app, ["status"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "1 linked, 1 missing" in result.output


class TestTrackCommand:
    """Tests for dotctl track."""

    def test_track(self, paths: RepoPaths, home: Path, cli_env: dict[str, str]) -> None:
        """A home file is moved into the repository."""
        (home / ".vimrc").write_text("set nu\n")

        result = runner.invoke(app, ["track", str(home / ".vimrc"), "--app", "vim"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "Created apps/vim.yaml" in result.output
        assert "Tracking ~/.vimrc as vim/.vimrc" in result.output
        assert paths.dotfile_source("vim/.vimrc").read_text() == "set nu\n"
        assert (home / ".vimrc").is_symlink()

    def test_track_missing(self, home: Path, cli_env: dict[str, str]) -> None:
        result = runner.invoke(app, ["track", str(home / ".none"), "--app", "x"], env=cli_env)

        assert result.exit_code == 1
        assert "path not found" in result.output


class TestRestoreCommand:
    """Tests for dotctl restore."""

    def test_restore(self, repo: RepoBuilder, home: Path, cli_env: dict[str, str]) -> None:
        """Links become files and aliases land in ~/.aliases."""
        repo.dotfile("vim/vimrc", "set nu\n")
        repo.app(
            "vim",
            dotfiles=[{"source": "vim/vimrc", "target": "~/.vimrc"}],
            shell={"aliases": {"v": "vim"}},
        )
        repo.profile("base", apps=["vim"])
        runner.invoke(app, ["apply", "base"], env=cli_env)

        result = runner.invoke(app, ["restore", "--yes"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "Restored 1 file(s)." in result.output
        assert not (home / ".vimrc").is_symlink()
        assert "alias v='vim'" in (home / ".aliases").read_text()

    def test_restore_cancelled(self, home: Path, cli_env: dict[str, str]) -> None:
        result = runner.invoke(app, ["restore"], input="n\n", env=cli_env)

        assert "Cancelled." in result.output
        assert not (home / ".aliases").exists()


class TestValidateCommand:
    """Tests for dotctl validate."""

    def test_valid(self, repo: RepoBuilder, cli_env: dict[str, str]) -> None:
        repo.app("vim")
        repo.profile("base", apps=["vim", "ripgrep"])

        result = runner.invoke(app, ["validate"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "is valid" in result.output

    def test_issues_exit_code(self, repo: RepoBuilder, cli_env: dict[str, str]) -> None:
        """Issues are listed and the exit code is 2."""
        repo.profile("base", apps=["no-such-app"])

        result = runner.invoke(app, ["validate"], env=cli_env)

        assert result.exit_code == 2
        assert "no-such-app" in result.output
