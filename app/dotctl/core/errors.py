"""Error hierarchy and exit code mapping.

Every failure the engine surfaces is a DotctlError carrying an ErrorKind,
the subject it concerns (path, app or profile name) and, where feasible,
a one-line remediation hint. The CLI maps errors to stable exit codes.
"""

from enum import Enum, IntEnum


class ExitCode(IntEnum):
    """Process exit codes shared by all commands."""

    SUCCESS = 0
    RUNTIME_ERROR = 1
    HEALTH_ISSUES = 2
    FIX_FAILURE = 3
    NON_INTERACTIVE_STOP = 4


class ErrorKind(str, Enum):
    """Category of a failure.

    Attributes:
        SCHEMA: Unknown kind/version, malformed YAML, missing field.
        RESOLUTION: Missing profile or app, dependency cycle.
        CONDITION: Tokenization or parse error in a condition expression.
        CONFLICT: Duplicate target in a plan or a linker conflict.
        IO: Filesystem failure.
        SUBPROCESS: Package manager or hook failure (including timeouts).
        LOCK: The apply lock is held by another process.
        NON_INTERACTIVE_STOP: A prompt was required but none is possible.
    """

    SCHEMA = "schema"
    RESOLUTION = "resolution"
    CONDITION = "condition"
    CONFLICT = "conflict"
    IO = "io"
    SUBPROCESS = "subprocess"
    LOCK = "lock"
    NON_INTERACTIVE_STOP = "non_interactive_stop"


class DotctlError(Exception):
    """Base exception for all dotctl failures."""

    kind: ErrorKind = ErrorKind.IO

    def __init__(
        self,
        message: str,
        *,
        subject: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.subject = subject
        self.hint = hint

    @property
    def exit_code(self) -> ExitCode:
        """Exit code a CLI wrapper should use for this error."""
        if self.kind == ErrorKind.NON_INTERACTIVE_STOP:
            return ExitCode.NON_INTERACTIVE_STOP
        return ExitCode.RUNTIME_ERROR


class SchemaError(DotctlError):
    """Raised when a YAML file cannot be parsed or fails validation."""

    kind = ErrorKind.SCHEMA


class ResolutionError(DotctlError):
    """Raised when profiles or apps cannot be resolved."""

    kind = ErrorKind.RESOLUTION


class CircularDependencyError(ResolutionError):
    """Raised when profile includes or app dependencies form a cycle."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"circular dependency detected: {name}",
            subject=name,
            hint="Remove one edge of the cycle from includes/dependencies.",
        )


class NotFoundError(ResolutionError):
    """Raised when a referenced profile or app does not exist."""


class ConditionError(DotctlError):
    """Raised when a condition expression is malformed."""

    kind = ErrorKind.CONDITION


class ConflictError(DotctlError):
    """Raised when a link target or alias name is claimed twice."""

    kind = ErrorKind.CONFLICT


class FilesystemError(DotctlError):
    """Raised when a filesystem operation fails."""

    kind = ErrorKind.IO


class SubprocessError(DotctlError):
    """Raised when an external command fails."""

    kind = ErrorKind.SUBPROCESS


class HookTimeoutError(SubprocessError):
    """Raised when an apply hook exceeds its timeout."""


class PackageManagerError(SubprocessError):
    """Raised when a package manager command fails."""


class LockError(DotctlError):
    """Raised when the apply lock cannot be acquired."""

    kind = ErrorKind.LOCK


class NonInteractiveStopError(DotctlError):
    """Raised when a prompt is needed while running non-interactively."""

    kind = ErrorKind.NON_INTERACTIVE_STOP


class RiskDeclinedError(DotctlError):
    """Raised when the user declines to proceed with high-risk commands."""

    kind = ErrorKind.SUBPROCESS


def exit_code_for(exc: BaseException | None) -> ExitCode:
    """Map an exception to a process exit code.

    Args:
        exc: The exception raised by a command, or None on success.

    Returns:
        The ExitCode to terminate the process with.
    """
    if exc is None:
        return ExitCode.SUCCESS
    if isinstance(exc, DotctlError):
        return exc.exit_code
    return ExitCode.RUNTIME_ERROR
