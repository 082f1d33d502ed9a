"""Unit tests for bundle, profile and config models."""

import pytest
from dotctl.models.bundle import (
    Bundle,
    InitSnippet,
    Package,
    PlatformPreference,
    TargetMap,
)
from dotctl.models.profile import Profile
from pydantic import ValidationError


class TestPackage:
    """Tests for Package."""

    def test_apt_string_shorthand(self) -> None:
        """A bare apt string becomes an AptPackage."""
        package = Package.model_validate({"apt": "fd-find"})

        assert package.apt is not None
        assert package.apt.name == "fd-find"
        assert package.apt.repo is None

    def test_name_for(self) -> None:
        """name_for returns the per-manager name or None."""
        package = Package(brew="fd", apt="fd-find")

        assert package.name_for("brew") == "fd"
        assert package.name_for("apt") == "fd-find"
        assert package.name_for("dnf") is None
        assert package.name_for("snap") is None

    def test_preference_for_unknown_os(self) -> None:
        """Unknown platform tokens have no preference."""
        assert PlatformPreference(linux="brew").for_os("freebsd") is None


class TestBundle:
    """Tests for Bundle."""

    @pytest.mark.parametrize("name", ["git", "fd-find", "node.js", "my_tool", "k9s"])
    def test_valid_names(self, name: str) -> None:
        """Filename-safe names are accepted."""
        assert Bundle(name=name).name == name

    @pytest.mark.parametrize("name", ["", "../etc", "a/b", "-flag", "has space"])
    def test_invalid_names(self, name: str) -> None:
        """Unsafe names are rejected."""
        with pytest.raises(ValidationError):
            Bundle(name=name)

    def test_extra_fields_forbidden(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(ValidationError):
            Bundle.model_validate({"name": "git", "packages": ["git"]})

    def test_apply_hooks_default_empty(self) -> None:
        """A bundle without hooks has no apply hooks."""
        assert Bundle(name="git").apply_hooks == []


class TestTargetMapAndInit:
    """Tests for per-platform selection helpers."""

    def test_target_map_fallback(self) -> None:
        """Missing platform entries fall back to default."""
        target = TargetMap(default="~/.a", macos="~/.b")

        assert target.for_os("macos") == "~/.b"
        assert target.for_os("wsl") == "~/.a"

    def test_init_override(self) -> None:
        """Shell overrides win over common."""
        snippet = InitSnippet(name="starship", common="eval x", zsh="eval z")

        assert snippet.for_shell("zsh") == "eval z"
        assert snippet.for_shell("bash") == "eval x"
        assert snippet.for_shell("unknown") == "eval x"


class TestProfile:
    """Tests for Profile."""

    def test_profile_if_alias(self) -> None:
        """Profile conditions accept the 'if' key."""
        profile = Profile.model_validate(
            {"name": "base", "conditions": [{"if": "os == linux", "include_apps": ["xclip"]}]}
        )

        assert profile.conditions[0].condition == "os == linux"

