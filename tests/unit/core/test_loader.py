"""Unit tests for YAML document loading and saving."""

from datetime import UTC, datetime, timedelta

import pytest
import yaml
from dotctl.core.errors import SchemaError
from dotctl.core.loader import (
    load_all_bundles,
    load_all_profiles,
    load_bundle,
    load_config,
    load_global_aliases,
    load_local_bundle,
    load_state,
    save_bundle,
    save_state,
)
from dotctl.core.paths import RepoPaths
from dotctl.models.bundle import Bundle, Dotfile, TargetMap
from dotctl.models.state import State

from tests.conftest import RepoBuilder


class TestBundles:
    """Tests for bundle loading."""

    def test_load_full_bundle(self, repo: RepoBuilder, paths: RepoPaths) -> None:
        """All bundle sections are parsed."""
        repo.app(
            "kubectl",
            description="Kubernetes CLI",
            dependencies=["curl"],
            package={"apt": "kubectl", "brew": "kubernetes-cli"},
            dotfiles=[
                {
                    "source": "kubectl/config",
                    "target": {"default": "~/.kube/config", "macos": "~/Library/kube"},
                }
            ],
            shell={"aliases": {"k": "kubectl"}, "completions": {"bash": "kubectl completion bash"}},
            hooks={"apply": [{"run": "echo hi", "when": "os == linux"}]},
        )

        bundle = load_bundle(paths.bundle_file("kubectl"))

        assert bundle.dependencies == ["curl"]
        assert bundle.package is not None
        assert bundle.package.apt is not None
        assert bundle.package.apt.name == "kubectl"
        assert isinstance(bundle.dotfiles[0].target, TargetMap)
        assert bundle.shell is not None
        assert bundle.shell.aliases == {"k": "kubectl"}
        assert bundle.apply_hooks[0].when == "os == linux"

    def test_unknown_field_is_schema_error(self, repo: RepoBuilder, paths: RepoPaths) -> None:
        """Unknown keys are rejected with the file path."""
        repo.app("git", packages=["git"])

        with pytest.raises(SchemaError, match="git.yaml"):
            load_bundle(paths.bundle_file("git"))

    def test_invalid_yaml(self, paths: RepoPaths) -> None:
        """Syntax errors are schema errors."""
        path = paths.bundle_file("broken")
        path.parent.mkdir(parents=True)
        path.write_text("kind: App/v1\nname: [unclosed\n")

        with pytest.raises(SchemaError, match="Invalid YAML"):
            load_bundle(path)

    def test_missing_local_bundle(self, paths: RepoPaths) -> None:
        """A missing apps/<name>.yaml yields None."""
        assert load_local_bundle(paths, "nope") is None

    def test_load_all_sorted(self, repo: RepoBuilder, paths: RepoPaths) -> None:
        """All bundles are loaded keyed by name."""
        repo.app("zsh")
        repo.app("git")

        assert list(load_all_bundles(paths)) == ["git", "zsh"]

    def test_save_roundtrip_omits_defaults(self, paths: RepoPaths) -> None:
        """Saved bundles start with kind and skip empty defaults."""
        dotfile = Dotfile(source="git/.gitconfig", target="~/.gitconfig")
        bundle = Bundle(name="git", dotfiles=[dotfile])

        path = save_bundle(paths, bundle)
        data = yaml.safe_load(path.read_text())

        assert list(data)[0] == "kind"
        assert data["kind"] == "App/v1"
        assert "hooks" not in data
        assert load_bundle(path) == bundle


class TestProfiles:
    """Tests for profile loading."""

    def test_condition_uses_if_key(self, repo: RepoBuilder, paths: RepoPaths) -> None:
        """Conditional rules are written with 'if'."""
        repo.profile(
            "base",
            apps=["git"],
            conditions=[{"if": "os == macos", "include_apps": ["brew-extras"]}],
        )

        profile = load_all_profiles(paths)["base"]

        assert profile.conditions[0].condition == "os == macos"
        assert profile.conditions[0].include_apps == ["brew-extras"]

    def test_load_all(self, repo: RepoBuilder, paths: RepoPaths) -> None:
        """Profiles are keyed by name."""
        repo.profile("base")
        repo.profile("work", includes=["base"])

        assert sorted(load_all_profiles(paths)) == ["base", "work"]


class TestOptionalDocuments:
    """Tests for documents that fall back to defaults."""

    def test_missing_config_uses_defaults(self, paths: RepoPaths) -> None:
        """No config.yaml means default strategies."""
        config = load_config(paths)

        assert config.conflict_resolution.dotfiles == "backup_and_replace"
        assert config.conflict_resolution.aliases == "last_wins"
        assert config.history.max_size_mb == 512
        assert config.hooks.timeout_seconds == 30.0

    def test_partial_config(self, repo: RepoBuilder, paths: RepoPaths) -> None:
        """Missing sections keep their defaults."""
        repo.config(conflict_resolution={"dotfiles": "error"}, ui={"color": "never"})

        config = load_config(paths)

        assert config.conflict_resolution.dotfiles == "error"
        assert config.conflict_resolution.aliases == "last_wins"
        assert config.ui.color == "never"

    def test_compact_check_interval(self, paths: RepoPaths) -> None:
        """A generated default config with a "24h" interval loads."""
        paths.config_file.write_text(
            "kind: Config/v1\n"
            "shell: zsh\n"
            "conflict_resolution:\n"
            "  aliases: last_wins\n"
            "  dotfiles: error\n"
            "package_manager:\n"
            "  prefer:\n"
            "    macos: auto\n"
            "    linux: auto\n"
            "    wsl: auto\n"
            "security:\n"
            "  confirm_scripts: true\n"
            "  log_scripts: true\n"
            "history:\n"
            "  max_size_mb: 512\n"
            "updates:\n"
            "  disabled: false\n"
            "  check_interval: 24h\n"
            "ui:\n"
            "  color: auto\n"
        )

        config = load_config(paths)

        assert config.updates.check_interval == timedelta(hours=24)
        assert config.shell == "zsh"
        assert config.security.log_scripts is True

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("30m", timedelta(minutes=30)),
            ("90s", timedelta(seconds=90)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("PT2H", timedelta(hours=2)),
            (3600, timedelta(hours=1)),
        ],
    )
    def test_check_interval_formats(
        self, repo: RepoBuilder, paths: RepoPaths, text: str | int, expected: timedelta
    ) -> None:
        repo.config(updates={"check_interval": text})

        assert load_config(paths).updates.check_interval == expected

    def test_bad_check_interval(self, repo: RepoBuilder, paths: RepoPaths) -> None:
        repo.config(updates={"check_interval": "soon"})

        with pytest.raises(SchemaError, match="updates.check_interval"):
            load_config(paths)

    def test_invalid_strategy(self, repo: RepoBuilder, paths: RepoPaths) -> None:
        """Unknown strategies are schema errors."""
        repo.config(conflict_resolution={"dotfiles": "yolo"})

        with pytest.raises(SchemaError, match="conflict_resolution.dotfiles"):
            load_config(paths)

    def test_missing_state_and_aliases(self, paths: RepoPaths) -> None:
        """Missing state and aliases are empty."""
        assert load_state(paths).applied_profiles == []
        assert load_global_aliases(paths).aliases == {}

    def test_state_roundtrip(self, paths: RepoPaths) -> None:
        """State survives a save/load cycle."""
        state = State()
        state.add_profile("base", ["git", "zsh"], when=datetime(2026, 1, 2, tzinfo=UTC))

        save_state(paths, state)
        loaded = load_state(paths)

        assert loaded.profile_names == ["base"]
        assert loaded.app_names == ["git", "zsh"]
        assert loaded.last_applied == datetime(2026, 1, 2, tzinfo=UTC)
