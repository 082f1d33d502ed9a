"""Unit tests for rc file integration."""

import os
from pathlib import Path

import pytest
from dotctl.shell.generator import ShellType
from dotctl.shell.injector import (
    ALIASES_MARKER,
    MARKER,
    inject_source_line,
    rc_file,
    restore_source_line,
    source_line,
)


@pytest.fixture
def script(home: Path) -> Path:
    return home / ".dotfiles" / "generated" / "init.sh"


class TestRcFile:
    """Tests for rc_file."""

    def test_zsh(self, home: Path) -> None:
        assert rc_file(ShellType.ZSH, home) == home / ".zshrc"

    def test_bash_prefers_existing_bashrc(self, home: Path) -> None:
        """.bash_profile is used only when .bashrc does not exist."""
        assert rc_file(ShellType.BASH, home) == home / ".bash_profile"

        (home / ".bashrc").write_text("")

        assert rc_file(ShellType.BASH, home) == home / ".bashrc"

    def test_unsupported_shell(self, home: Path) -> None:
        assert rc_file(ShellType.parse("fish"), home) is None


class TestSourceLine:
    """Tests for source_line."""

    def test_under_home(self, home: Path, script: Path) -> None:
        """Paths under home are written with ~/."""
        expected = "[ -f ~/.dotfiles/generated/init.sh ] && source ~/.dotfiles/generated/init.sh"
        assert source_line(script, home) == expected

    def test_quotes_unsafe_paths(self, home: Path) -> None:
        line = source_line(Path("/opt/my dots/init.sh"), home)

        assert line == "[ -f '/opt/my dots/init.sh' ] && source '/opt/my dots/init.sh'"


class TestInjectSourceLine:
    """Tests for inject_source_line."""

    def test_creates_missing_rc(self, home: Path, script: Path) -> None:
        rc = home / ".zshrc"

        assert inject_source_line(rc, script, home) is True

        assert rc.read_text() == f"{MARKER}\n{source_line(script, home)}\n"
        assert not (home / ".zshrc.dotctl.backup").exists()

    def test_appends_after_existing_content(self, home: Path, script: Path) -> None:
        """A missing trailing newline is added before the block."""
        rc = home / ".bashrc"
        rc.write_text("export EDITOR=vim")

        inject_source_line(rc, script, home)

        assert rc.read_text() == (
            f"export EDITOR=vim\n\n{MARKER}\n{source_line(script, home)}\n"
        )
        assert (home / ".bashrc.dotctl.backup").read_text() == "export EDITOR=vim"

    def test_idempotent(self, home: Path, script: Path) -> None:
        """A second call leaves the file unchanged."""
        rc = home / ".bashrc"
        inject_source_line(rc, script, home)
        before = rc.read_text()

        assert inject_source_line(rc, script, home) is False

        assert rc.read_text() == before

    def test_commented_line_does_not_count(self, home: Path, script: Path) -> None:
        rc = home / ".bashrc"
        rc.write_text(f"# source {script}\n")

        assert inject_source_line(rc, script, home) is True

    def test_keeps_mode(self, home: Path, script: Path) -> None:
        rc = home / ".bashrc"
        rc.write_text("umask 022\n")
        rc.chmod(0o600)

        inject_source_line(rc, script, home)

        assert rc.stat().st_mode & 0o777 == 0o600

    def test_symlinked_rc_keeps_link(self, home: Path, tmp_path: Path, script: Path) -> None:
        """A linked rc file is edited at its real location."""
        real = tmp_path / "repo-dotfiles" / "bashrc"
        real.parent.mkdir()
        real.write_text("export EDITOR=vim\n")
        rc = home / ".bashrc"
        rc.symlink_to(real)

        inject_source_line(rc, script, home)

        assert rc.is_symlink()
        assert os.readlink(rc) == str(real)
        assert source_line(script, home) in real.read_text()


class TestRestoreSourceLine:
    """Tests for restore_source_line."""

    def test_replaces_init_line_with_aliases(self, home: Path, script: Path) -> None:
        """The marker and init line give way to the aliases line."""
        rc = home / ".bashrc"
        rc.write_text("export EDITOR=vim\n")
        inject_source_line(rc, script, home)
        with rc.open("a") as fh:
            fh.write("export PATH=$HOME/bin:$PATH\n")

        assert restore_source_line(rc, script, home / ".aliases", home) is True

        assert rc.read_text() == (
            "export EDITOR=vim\n\n"
            f"{ALIASES_MARKER}\n"
            "[ -f ~/.aliases ] && source ~/.aliases\n"
            "export PATH=$HOME/bin:$PATH\n"
        )

    def test_without_aliases_only_removes(self, home: Path, script: Path) -> None:
        rc = home / ".zshrc"
        rc.write_text(f"setopt autocd\n{MARKER}\n{source_line(script, home)}\n")

        restore_source_line(rc, script, None, home)

        assert rc.read_text() == "setopt autocd\n"

    def test_aliases_already_sourced(self, home: Path, script: Path) -> None:
        """An existing aliases line is not duplicated."""
        aliases = home / ".aliases"
        rc = home / ".zshrc"
        rc.write_text(f"{source_line(aliases, home)}\n{source_line(script, home)}\n")

        restore_source_line(rc, script, aliases, home)

        assert rc.read_text() == f"{source_line(aliases, home)}\n"

    def test_unrelated_rc_untouched(self, home: Path, script: Path) -> None:
        rc = home / ".bashrc"
        rc.write_text("export EDITOR=vim\n")

        assert restore_source_line(rc, script, home / ".aliases", home) is False

        assert rc.read_text() == "export EDITOR=vim\n"
        assert not (home / ".bashrc.dotctl.backup").exists()

    def test_missing_rc(self, home: Path, script: Path) -> None:
        assert restore_source_line(home / ".zshrc", script, None, home) is False
        assert not (home / ".zshrc").exists()
