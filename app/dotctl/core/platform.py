"""Platform facts used by conditions, target maps and manager selection.

Facts are detected once per invocation and passed explicitly; nothing in
the engine reads them from process globals.
"""

import logging
import os
import platform as _stdlib_platform
import socket
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEBIAN_FAMILY = frozenset({"debian", "ubuntu", "linuxmint", "pop"})
FEDORA_FAMILY = frozenset({"fedora", "rhel", "centos", "rocky", "almalinux"})
ARCH_FAMILY = frozenset({"arch", "manjaro", "endeavouros"})

# Machine names normalized to the tokens used in conditions
_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
}


@dataclass(frozen=True, slots=True)
class Platform:
    """Facts about the machine dotctl is running on.

    Attributes:
        os: Operating system token: "macos", "linux" or "wsl".
        distro: Linux distribution ID (empty on macOS).
        hostname: Machine hostname.
        arch: CPU architecture ("amd64", "arm64", ...).
        home: User home directory.
        shell: Detected login shell name ("bash", "zsh", "fish" or "unknown").
    """

    os: str
    distro: str
    hostname: str
    arch: str
    home: Path
    shell: str = "unknown"

    @property
    def is_macos(self) -> bool:
        return self.os == "macos"

    @property
    def is_linux(self) -> bool:
        return self.os == "linux"

    @property
    def is_wsl(self) -> bool:
        return self.os == "wsl"

    @property
    def is_debian(self) -> bool:
        return self.distro in DEBIAN_FAMILY

    @property
    def is_fedora(self) -> bool:
        return self.distro in FEDORA_FAMILY

    @property
    def is_arch(self) -> bool:
        return self.distro in ARCH_FAMILY

    def fact(self, field: str) -> str:
        """Return the value of a condition field.

        Args:
            field: One of "os", "distro", "hostname", "arch".

        Raises:
            KeyError: If the field is not a condition field.
        """
        values = {
            "os": self.os,
            "distro": self.distro,
            "hostname": self.hostname,
            "arch": self.arch,
        }
        return values[field]


def detect(environ: dict[str, str] | None = None) -> Platform:
    """Detect platform facts for the current machine.

    Args:
        environ: Environment mapping to read HOME/SHELL from (default: os.environ).

    Returns:
        Platform with all facts populated.
    """
    env = os.environ if environ is None else environ
    system = _stdlib_platform.system()

    distro = ""
    if system == "Darwin":
        os_name = "macos"
    elif system == "Linux":
        os_name = "wsl" if _is_wsl() else "linux"
        distro = _detect_distro()
    else:
        os_name = system.lower()

    machine = _stdlib_platform.machine().lower()
    home = env.get("HOME") or str(Path.home())

    facts = Platform(
        os=os_name,
        distro=distro,
        hostname=socket.gethostname(),
        arch=_ARCH_ALIASES.get(machine, machine),
        home=Path(home),
        shell=detect_shell(env),
    )
    logger.debug("Detected platform: %s", facts)
    return facts


def detect_shell(environ: dict[str, str] | None = None) -> str:
    """Return the user's login shell name from $SHELL.

    Returns:
        "bash", "zsh", "fish" or "unknown".
    """
    env = os.environ if environ is None else environ
    shell_path = env.get("SHELL", "")
    if not shell_path:
        return "unknown"
    name = shell_path.rstrip("/").rsplit("/", 1)[-1]
    if name in ("bash", "zsh", "fish"):
        return name
    return "unknown"


def _is_wsl(version_path: Path = Path("/proc/version")) -> bool:
    """Check /proc/version for Microsoft/WSL markers."""
    try:
        version = version_path.read_text(encoding="utf-8", errors="replace").lower()
    except OSError:
        return False
    return "microsoft" in version or "wsl" in version


def _detect_distro(os_release: Path = Path("/etc/os-release")) -> str:
    """Detect the Linux distribution ID."""
    try:
        return parse_os_release(os_release.read_text(encoding="utf-8"))
    except OSError as e:
        logger.debug("Cannot read %s: %s", os_release, e)

    # Older systems without os-release
    for marker, name in (
        ("/etc/debian_version", "debian"),
        ("/etc/fedora-release", "fedora"),
        ("/etc/arch-release", "arch"),
    ):
        if Path(marker).exists():
            return name
    return ""


def parse_os_release(content: str) -> str:
    """Extract the lowercase ID= value from os-release content."""
    for line in content.splitlines():
        if line.startswith("ID="):
            return line[len("ID=") :].strip().strip("\"'").lower()
    return ""


def expand_home(path: str, home: Path) -> Path:
    """Expand a leading ``~`` using the given home directory.

    Only ``~`` and ``~/...`` are expanded; ``~user`` forms are left alone.

    Args:
        path: Absolute or tilde-prefixed path.
        home: Home directory to substitute.

    Returns:
        Normalized absolute path.
    """
    if path == "~":
        return Path(os.path.normpath(home))
    if path.startswith("~/"):
        return Path(os.path.normpath(home / path[2:]))
    return Path(os.path.normpath(path))
