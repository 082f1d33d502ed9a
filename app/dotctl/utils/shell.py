"""Subprocess helpers for package managers and hooks.

Every external command dotctl runs goes through run_command, which
captures output and never raises on a non-zero exit unless asked to.
"""

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

# Interpreter used for hook bodies and install scripts
POSIX_SHELL = "sh"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured result of one external command.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Diagnostic output for error messages: stderr, else stdout."""
        return (self.stderr or self.stdout).strip()


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: Path | str | None = None,
) -> CommandResult:
    """Execute a command and capture its output.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=str(cwd) if cwd is not None else None,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def run_script(
    script: str,
    *,
    timeout: float | None = 60.0,
    cwd: Path | str | None = None,
) -> CommandResult:
    """Run a shell snippet with ``sh -c``.

    Raises:
        subprocess.TimeoutExpired: If the script exceeds timeout.
        FileNotFoundError: If no POSIX shell is installed.
    """
    return run_command([POSIX_SHELL, "-c", script], timeout=timeout, cwd=cwd)


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(name) is not None
