"""Unit tests for platform detection helpers."""

from pathlib import Path
from unittest.mock import patch

import pytest
from dotctl.core.platform import (
    Platform,
    detect,
    detect_shell,
    expand_home,
    parse_os_release,
)


class TestParseOsRelease:
    """Tests for parse_os_release."""

    def test_quoted_id(self) -> None:
        """Quotes are stripped and the ID lowercased."""
        content = 'NAME="Ubuntu"\nID="Ubuntu"\nID_LIKE=debian\n'
        assert parse_os_release(content) == "ubuntu"

    def test_missing_id(self) -> None:
        """No ID line yields an empty string."""
        assert parse_os_release("NAME=Something\n") == ""


class TestDetectShell:
    """Tests for detect_shell."""

    @pytest.mark.parametrize(
        ("shell", "expected"),
        [
            ("/bin/bash", "bash"),
            ("/usr/local/bin/zsh", "zsh"),
            ("/usr/bin/fish", "fish"),
            ("/bin/tcsh", "unknown"),
            ("", "unknown"),
        ],
    )
    def test_shell_names(self, shell: str, expected: str) -> None:
        """Only known shells are recognized."""
        assert detect_shell({"SHELL": shell}) == expected


class TestExpandHome:
    """Tests for expand_home."""

    def test_tilde_prefix(self) -> None:
        """~/ is replaced by the given home."""
        assert expand_home("~/.config/../.vimrc", Path("/h")) == Path("/h/.vimrc")

    def test_bare_tilde(self) -> None:
        """~ alone is the home directory."""
        assert expand_home("~", Path("/h")) == Path("/h")

    def test_absolute_and_user_forms(self) -> None:
        """Absolute paths are normalized and ~user is left alone."""
        assert expand_home("/etc//hosts", Path("/h")) == Path("/etc/hosts")
        assert expand_home("~bob/x", Path("/h")) == Path("~bob/x")


class TestDetect:
    """Tests for detect."""

    def test_macos(self) -> None:
        """Darwin maps to macos with no distro."""
        with (
            patch("dotctl.core.platform._stdlib_platform.system", return_value="Darwin"),
            patch("dotctl.core.platform._stdlib_platform.machine", return_value="arm64"),
            patch("dotctl.core.platform.socket.gethostname", return_value="mac"),
        ):
            facts = detect({"HOME": "/Users/me", "SHELL": "/bin/zsh"})

        assert facts == Platform(
            os="macos",
            distro="",
            hostname="mac",
            arch="arm64",
            home=Path("/Users/me"),
            shell="zsh",
        )

    def test_linux_and_wsl(self) -> None:
        """Linux is reported as wsl when /proc/version mentions Microsoft."""
        with (
            patch("dotctl.core.platform._stdlib_platform.system", return_value="Linux"),
            patch("dotctl.core.platform._stdlib_platform.machine", return_value="x86_64"),
            patch("dotctl.core.platform._detect_distro", return_value="ubuntu"),
            patch("dotctl.core.platform._is_wsl", return_value=True),
        ):
            facts = detect({"HOME": "/home/me"})

        assert facts.os == "wsl"
        assert facts.distro == "ubuntu"
        assert facts.arch == "amd64"
        assert facts.is_debian

    def test_fact_lookup(self) -> None:
        """fact() exposes only condition fields."""
        facts = Platform(os="linux", distro="arch", hostname="h", arch="arm64", home=Path("/h"))

        assert facts.fact("distro") == "arch"
        assert facts.is_arch
        with pytest.raises(KeyError):
            facts.fact("home")
