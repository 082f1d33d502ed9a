"""Detection of high-risk shell constructs in bundles.

Apply hooks and custom install scripts are scanned for commands that run
downloaded content without inspection (``curl ... | sh`` and friends).
Third-party APT signing keys and repositories are reported as well, since
they extend what the system package manager trusts.
"""

import re
from dataclasses import dataclass

from dotctl.models.bundle import Bundle

# Locations reported in findings
HOOK_LOCATION = "hooks.apply.run"
SCRIPT_LOCATION = "package.custom.script"
APT_KEY_LOCATION = "package.apt.key"
APT_REPO_LOCATION = "package.apt.repo"

_HIGH_RISK_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(r"\b(curl|wget)\b[^\n|;]*\|\s*(sh|bash|zsh)\b", re.IGNORECASE),
        "pipes remote content directly into a shell",
    ),
    (
        re.compile(r"\b(bash|sh|zsh)\b\s+-c\s+.*\b(curl|wget)\b", re.IGNORECASE),
        "executes downloaded content via shell -c",
    ),
    (
        re.compile(r"\$\(.*\b(curl|wget)\b.*\)", re.IGNORECASE),
        "uses command substitution with remote content",
    ),
)


@dataclass(frozen=True, slots=True)
class RiskFinding:
    """A high-risk command found in a bundle.

    Attributes:
        app: Bundle name.
        location: Where the command lives ("hooks.apply.run", ...).
        command: The offending command.
        reason: Why it is considered risky.
    """

    app: str
    location: str
    command: str
    reason: str

    def describe(self) -> str:
        return f"{self.app} ({self.location}): {self.reason}: {self.command}"


def high_risk_reason(command: str) -> str | None:
    """Return why ``command`` is high-risk, or None if it is not."""
    text = command.strip()
    if not text:
        return None
    for pattern, reason in _HIGH_RISK_PATTERNS:
        if pattern.search(text):
            return reason
    return None


def scan_bundles(
    bundles: list[Bundle], *, include_hooks: bool = True, include_apt_sources: bool = True
) -> list[RiskFinding]:
    """Scan bundles for high-risk commands.

    Args:
        bundles: Bundles to scan, in order.
        include_hooks: Report apply hooks (only relevant when hooks will run).
        include_apt_sources: Report APT keys and repositories (not on macOS).

    Returns:
        Findings in bundle order.
    """
    findings: list[RiskFinding] = []
    for bundle in bundles:
        if include_hooks:
            for hook in bundle.apply_hooks:
                reason = high_risk_reason(hook.run)
                if reason is not None:
                    findings.append(
                        RiskFinding(bundle.name, HOOK_LOCATION, hook.run.strip(), reason)
                    )

        custom = bundle.package.custom if bundle.package is not None else None
        if custom is not None:
            reason = high_risk_reason(custom.script)
            if reason is not None:
                findings.append(
                    RiskFinding(bundle.name, SCRIPT_LOCATION, custom.script.strip(), reason)
                )

        apt = bundle.package.apt if bundle.package is not None else None
        if include_apt_sources and apt is not None:
            if apt.key:
                findings.append(
                    RiskFinding(bundle.name, APT_KEY_LOCATION, apt.key, "adds an APT signing key")
                )
            if apt.repo:
                findings.append(
                    RiskFinding(
                        bundle.name,
                        APT_REPO_LOCATION,
                        apt.repo,
                        "adds a third-party APT repository",
                    )
                )
    return findings
