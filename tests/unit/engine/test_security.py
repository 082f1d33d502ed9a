"""Unit tests for high-risk command detection."""

import pytest
from dotctl.engine.security import (
    APT_KEY_LOCATION,
    APT_REPO_LOCATION,
    HOOK_LOCATION,
    SCRIPT_LOCATION,
    high_risk_reason,
    scan_bundles,
)
from dotctl.models.bundle import ApplyHook, AptPackage, Bundle, CustomInstall, Hooks, Package


class TestHighRiskReason:
    """Tests for high_risk_reason."""

    @pytest.mark.parametrize(
        "command",
        [
            "curl -fsSL https://example.com/install.sh | sh",
            "wget -qO- https://example.com/x | bash",
            "CURL https://x | ZSH",
            'bash -c "$(curl -fsSL https://example.com/install.sh)"',
            'sh -c "$(wget -O- https://x)"',
            "eval $(curl -s https://x)",
        ],
    )
    def test_risky(self, command: str) -> None:
        """Remote content executed without inspection is flagged."""
        assert high_risk_reason(command) is not None

    @pytest.mark.parametrize(
        "command",
        [
            "curl -fsSL -o install.sh https://example.com/install.sh",
            "git clone https://github.com/x/y ~/.y",
            "echo hello | sh",
            "",
        ],
    )
    def test_safe(self, command: str) -> None:
        """Downloads without execution are not flagged."""
        assert high_risk_reason(command) is None


class TestScanBundles:
    """Tests for scan_bundles."""

    @pytest.fixture
    def bundle(self) -> Bundle:
        return Bundle(
            name="rustup",
            package=Package(custom=CustomInstall(script="curl https://sh.rustup.rs | sh")),
            hooks=Hooks(apply=[ApplyHook(run="wget -qO- https://x | bash"), ApplyHook(run="ls")]),
        )

    def test_hooks_and_scripts(self, bundle: Bundle) -> None:
        """Hooks and custom scripts are both reported."""
        findings = scan_bundles([bundle])

        assert [f.location for f in findings] == [HOOK_LOCATION, SCRIPT_LOCATION]
        assert findings[0].app == "rustup"
        assert "rustup" in findings[0].describe()

    def test_hooks_skipped(self, bundle: Bundle) -> None:
        """Hooks that will not run are not reported."""
        findings = scan_bundles([bundle], include_hooks=False)

        assert [f.location for f in findings] == [SCRIPT_LOCATION]

    def test_apt_sources_reported(self) -> None:
        """Third-party APT keys and repositories are surfaced."""
        bundle = Bundle(
            name="gh",
            package=Package(
                apt=AptPackage(
                    name="gh",
                    repo="deb https://cli.github.com/packages stable main",
                    key="https://cli.github.com/packages/githubcli-archive-keyring.gpg",
                )
            ),
        )

        findings = scan_bundles([bundle])

        assert [f.location for f in findings] == [APT_KEY_LOCATION, APT_REPO_LOCATION]
        assert findings[1].command == "deb https://cli.github.com/packages stable main"
        assert scan_bundles([bundle], include_apt_sources=False) == []

    def test_plain_apt_package_not_reported(self) -> None:
        bundle = Bundle(name="jq", package=Package(apt=AptPackage(name="jq")))

        assert scan_bundles([bundle]) == []
