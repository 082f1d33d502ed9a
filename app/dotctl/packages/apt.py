"""APT package manager driver.

Installs with ``sudo apt-get install -y`` and can register a third-party
repository before installing. Signing keys are dearmored into
``/etc/apt/keyrings/<name>.gpg`` and referenced from a ``signed-by=``
sources entry; ``ppa:`` repositories go through add-apt-repository.
"""

import logging
import re
import tempfile
from pathlib import Path

from dotctl.core.errors import PackageManagerError
from dotctl.models.bundle import AptPackage
from dotctl.packages.base import PackageManager
from dotctl.utils.shell import command_exists

logger = logging.getLogger(__name__)

KEYRING_DIR = Path("/etc/apt/keyrings")
SOURCES_DIR = Path("/etc/apt/sources.list.d")

_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _file_stem(package: str) -> str:
    return _UNSAFE_FILE_CHARS.sub("-", package).lstrip(".-") or "dotctl"


def keyring_path(package: str) -> Path:
    """Keyring file for the signing key of ``package``."""
    return KEYRING_DIR / f"{_file_stem(package)}.gpg"


def sources_path(package: str) -> Path:
    """Sources list file for the repository of ``package``."""
    return SOURCES_DIR / f"{_file_stem(package)}.list"


def is_deb_line(repo: str) -> bool:
    """True for a one-line "deb ..." or "deb-src ..." entry (not a ppa: shortcut)."""
    return repo.split(maxsplit=1)[:1] in (["deb"], ["deb-src"])


def source_entry(repo: str, keyring: Path | None) -> str:
    """Build the one-line sources entry for ``repo``.

    A keyring adds ``signed-by=`` to the entry options unless the line
    already names one.
    """
    kind, _, rest = repo.strip().partition(" ")
    rest = rest.strip()
    options = ""
    if rest.startswith("["):
        options, _, rest = rest[1:].partition("]")
        options, rest = options.strip(), rest.strip()
    if keyring is not None and "signed-by=" not in options:
        options = f"{options} signed-by={keyring}".strip()
    if options:
        return f"{kind} [{options}] {rest}\n"
    return f"{kind} {rest}\n"


class AptManager(PackageManager):
    """Driver for APT/dpkg packages. Requires sudo for changes."""

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return command_exists("apt-get")

    def install(self, package: str) -> None:
        self._run(["sudo", "apt-get", "install", "-y", package], package, "install")

    def install_with_repo(self, spec: AptPackage) -> None:
        """Register ``spec.key`` and ``spec.repo`` if given, then install.

        Every step runs as an argument list; nothing from the bundle is
        passed through a shell.

        Args:
            spec: APT package definition from a bundle.

        Raises:
            PackageManagerError: If any step fails.
        """
        if spec.key or spec.repo:
            with tempfile.TemporaryDirectory(prefix="dotctl-apt-") as tmp:
                workdir = Path(tmp)
                keyring = self._add_key(spec.name, spec.key, workdir) if spec.key else None
                if spec.repo:
                    self._add_repo(spec.name, spec.repo, keyring, workdir)
        self.install(spec.name)

    def _add_key(self, package: str, key: str, workdir: Path) -> Path:
        download = workdir / "key"
        keyring = keyring_path(package)
        logger.info("Adding APT signing key %s as %s", key, keyring)
        self._run(
            ["curl", "-fsSL", "-o", str(download), key],
            package,
            "download signing key for",
        )
        self._run(
            ["sudo", "install", "-d", "-m", "0755", str(KEYRING_DIR)],
            package,
            "create keyring directory for",
        )
        self._run(
            ["sudo", "gpg", "--batch", "--yes", "--dearmor", "-o", str(keyring), str(download)],
            package,
            "install signing key for",
        )
        return keyring

    def _add_repo(self, package: str, repo: str, keyring: Path | None, workdir: Path) -> None:
        logger.info("Adding APT repository %s", repo)
        if is_deb_line(repo):
            entry = workdir / "sources.list"
            entry.write_text(source_entry(repo, keyring), encoding="utf-8")
            self._run(
                ["sudo", "install", "-m", "0644", str(entry), str(sources_path(package))],
                package,
                "add repository for",
            )
        else:
            self._run(
                ["sudo", "add-apt-repository", "-y", repo],
                package,
                "add repository for",
            )
        self._run(["sudo", "apt-get", "update"], package, "update package lists for")

    def uninstall(self, package: str) -> None:
        self._run(["sudo", "apt-get", "remove", "-y", package], package, "uninstall")

    def is_installed(self, package: str) -> bool:
        """Check ``dpkg -l`` for an ``ii`` (installed) line naming the package."""
        result = self._probe(["dpkg", "-l", package], package)
        if result is None or not result.success:
            return False
        for line in result.stdout.splitlines():
            fields = line.split()
            if len(fields) >= 2 and fields[0] == "ii" and fields[1].split(":")[0] == package:
                return True
        return False


def install_apt_package(manager: PackageManager, spec: AptPackage) -> None:
    """Install an APT package, using repository setup when the driver supports it."""
    if isinstance(manager, AptManager):
        manager.install_with_repo(spec)
    elif spec.repo or spec.key:
        msg = f"apt repository setup requires the apt driver, got {manager.name}"
        raise PackageManagerError(msg, subject=spec.name)
    else:
        manager.install(spec.name)
