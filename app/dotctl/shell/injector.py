"""Shell rc file integration.

Adds a guarded ``source`` line for the generated init script to
``~/.bashrc`` (or ``~/.bash_profile``) or ``~/.zshrc``, and on restore
swaps it for a line sourcing the exported aliases file. Both edits are
idempotent and keep a ``.dotctl.backup`` copy of the previous rc file.
"""

import logging
import shlex
import shutil
from pathlib import Path

from dotctl.core.errors import FilesystemError
from dotctl.shell.generator import ShellType, write_script

logger = logging.getLogger(__name__)

MARKER = "# Added by dotctl for shell integration"
ALIASES_MARKER = "# Aliases exported by dotctl restore"
BACKUP_SUFFIX = ".dotctl.backup"


def rc_file(shell: ShellType, home: Path) -> Path | None:
    """The rc file dotctl edits for ``shell``, or None for unsupported shells.

    Bash uses ``.bashrc`` when it exists and ``.bash_profile`` otherwise.
    """
    if shell == ShellType.ZSH:
        return home / ".zshrc"
    if shell == ShellType.BASH:
        bashrc = home / ".bashrc"
        return bashrc if bashrc.exists() else home / ".bash_profile"
    return None


def display_path(path: Path, home: Path) -> str:
    """Shell-quoted ``path``, written as ``~/...`` when it lives under ``home``."""
    try:
        relative = path.relative_to(home)
    except ValueError:
        return shlex.quote(str(path))
    return "~/" + shlex.quote(relative.as_posix())


def source_line(path: Path, home: Path) -> str:
    """``[ -f <path> ] && source <path>`` for ``path``."""
    shown = display_path(path, home)
    return f"[ -f {shown} ] && source {shown}"


def _read(rc: Path) -> str:
    try:
        return rc.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except OSError as e:
        raise FilesystemError(f"Failed to read {rc}: {e}", subject=str(rc)) from e


def _write(rc: Path, content: str) -> None:
    # A linked rc file is edited in place, keeping the link
    rc = rc.resolve()
    mode = 0o644
    if rc.exists():
        mode = rc.stat().st_mode & 0o777
        backup = rc.with_name(rc.name + BACKUP_SUFFIX)
        try:
            shutil.copy2(rc, backup)
        except OSError as e:
            raise FilesystemError(f"Failed to back up {rc}: {e}", subject=str(rc)) from e
        logger.debug("Backed up %s to %s", rc, backup)
    write_script(rc, content, mode)


def _mentions(line: str, path: Path, home: Path) -> bool:
    text = line.strip()
    if text.startswith("#"):
        return False
    return str(path) in text or display_path(path, home) in text


def inject_source_line(rc: Path, script: Path, home: Path) -> bool:
    """Append a line sourcing ``script`` to ``rc`` unless one is present.

    Returns:
        True if ``rc`` was changed.

    Raises:
        FilesystemError: If the rc file cannot be read, backed up or written.
    """
    content = _read(rc)
    if any(_mentions(line, script, home) for line in content.splitlines()):
        logger.info("%s already sources %s", rc, script)
        return False

    if content and not content.endswith("\n"):
        content += "\n"
    if content:
        content += "\n"
    content += f"{MARKER}\n{source_line(script, home)}\n"
    _write(rc, content)
    logger.info("Added source line for %s to %s", script, rc)
    return True


def restore_source_line(rc: Path, script: Path, aliases: Path | None, home: Path) -> bool:
    """Replace the init script source line in ``rc`` with one for ``aliases``.

    Lines sourcing ``script`` are dropped together with the marker comment
    above them. When ``aliases`` is given and not yet sourced, its line
    takes the place of the first dropped line. An rc file that does not
    source ``script`` is left alone.

    Returns:
        True if ``rc`` was changed.

    Raises:
        FilesystemError: If the rc file cannot be read, backed up or written.
    """
    if not rc.exists():
        return False
    lines = _read(rc).splitlines()
    wants_aliases = aliases is not None and not any(
        _mentions(line, aliases, home) for line in lines
    )

    kept: list[str] = []
    insert_at: int | None = None
    for line in lines:
        if _mentions(line, script, home):
            if kept and kept[-1].strip() == MARKER:
                kept.pop()
            if insert_at is None:
                insert_at = len(kept)
            continue
        kept.append(line)

    if insert_at is None:
        return False
    if wants_aliases and aliases is not None:
        kept[insert_at:insert_at] = [ALIASES_MARKER, source_line(aliases, home)]

    _write(rc, "\n".join(kept) + "\n")
    logger.info("Updated %s to stop sourcing %s", rc, script)
    return True
