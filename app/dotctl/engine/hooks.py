"""Apply hook execution.

Hooks run through ``sh -c`` in the user's home directory with a per-hook
timeout. A non-zero exit is a SubprocessError; exceeding the timeout is a
HookTimeoutError, which aborts the whole apply.
"""

import logging
import subprocess
from pathlib import Path

from dotctl.core.errors import HookTimeoutError, SubprocessError
from dotctl.models.bundle import ApplyHook
from dotctl.utils.shell import CommandResult, run_script

logger = logging.getLogger(__name__)


def format_duration(seconds: float) -> str:
    """Render a timeout for messages ("10ms", "1.5s", "30s")."""
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    if seconds == int(seconds):
        return f"{int(seconds)}s"
    return f"{seconds:g}s"


def run_hook(
    hook: ApplyHook, app: str, *, timeout: float, cwd: Path | None = None
) -> CommandResult:
    """Run one apply hook.

    Args:
        hook: Hook to run.
        app: Owning bundle name (for messages).
        timeout: Timeout in seconds.
        cwd: Working directory (default: current directory).

    Returns:
        The command result.

    Raises:
        HookTimeoutError: If the hook exceeds ``timeout``.
        SubprocessError: If the hook cannot start or exits non-zero.
    """
    logger.info("Running apply hook for %s: %s", app, hook.run)
    try:
        result = run_script(hook.run, timeout=timeout, cwd=cwd)
    except subprocess.TimeoutExpired as e:
        raise HookTimeoutError(
            f"hook timed out after {format_duration(timeout)}: {hook.run}",
            subject=app,
            hint="Raise hooks.timeout_seconds or pass --hook-timeout.",
        ) from e
    except OSError as e:
        raise SubprocessError(f"hook failed to start for {app}: {e}", subject=app) from e

    if result.stdout.strip():
        logger.debug("Hook output: %s", result.stdout.strip())
    if not result.success:
        msg = f"hook failed for {app} (exit {result.returncode}): {hook.run}"
        if result.output:
            msg = f"{msg}\n{result.output}"
        raise SubprocessError(msg, subject=app)
    return result
