"""Shell init script generation.

The generated script has a fixed section order: shebang, banner,
environment exports, aliases, functions, init snippets, completions and
finally the global aliases from ``aliases.yaml``. Output is a pure
function of its inputs, so two runs over the same bundles produce
byte-identical files.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from tempfile import NamedTemporaryFile

from dotctl.core.errors import ConflictError, FilesystemError
from dotctl.core.prompt import Prompter
from dotctl.models.bundle import Bundle
from dotctl.models.config import AliasStrategy

logger = logging.getLogger(__name__)

BANNER = (
    "# Generated by dotctl. Do not edit: this file is rewritten on every apply.\n"
    "# Source it from your shell rc file."
)

EXPORT_HEADER = "# Aliases exported by dotctl restore"


class ShellType(str, Enum):
    """Shell flavors the generator targets."""

    BASH = "bash"
    ZSH = "zsh"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, name: str | None) -> "ShellType":
        """Map a shell name ("bash", "/bin/zsh", ...) to a ShellType."""
        if not name:
            return cls.UNKNOWN
        base = os.path.basename(name.strip())
        for member in cls:
            if member.value == base:
                return member
        return cls.UNKNOWN

    @property
    def shebang(self) -> str:
        if self == ShellType.UNKNOWN:
            return "#!/bin/sh"
        return f"#!/bin/{self.value}"


def quote_single(value: str) -> str:
    """Quote ``value`` for use inside single quotes."""
    return "'" + value.replace("'", "'\\''") + "'"


def quote_double(value: str) -> str:
    """Quote ``value`` inside double quotes, keeping ``$VAR`` expansion."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def alias_line(name: str, command: str) -> str:
    return f"alias {name}={quote_single(command)}"


def resolve_alias_owners(
    bundles: list[Bundle],
    strategy: AliasStrategy = "last_wins",
    prompter: Prompter | None = None,
) -> dict[str, str]:
    """Decide which bundle owns every alias name.

    Args:
        bundles: Bundles in dependency order.
        strategy: Duplicate alias strategy.
        prompter: Asks the user under the ``prompt`` strategy.

    Returns:
        Mapping of alias name to the owning bundle's name.

    Raises:
        ConflictError: Under ``error`` when two bundles define the same alias.
        NonInteractiveStopError: Under ``prompt`` without a terminal.
    """
    claims: dict[str, list[str]] = {}
    for bundle in bundles:
        if bundle.shell is None:
            continue
        for name in bundle.shell.aliases:
            claims.setdefault(name, []).append(bundle.name)

    owners: dict[str, str] = {}
    for name, claimants in claims.items():
        if len(claimants) == 1 or strategy == "last_wins":
            if len(claimants) > 1:
                logger.debug("Alias %s defined by %s; %s wins", name, claimants, claimants[-1])
            owners[name] = claimants[-1]
            continue

        if strategy == "error":
            raise ConflictError(
                f"alias '{name}' is defined by multiple apps: {', '.join(claimants)}",
                subject=name,
                hint="Remove one definition or set conflict_resolution.aliases to last_wins.",
            )

        asker = prompter if prompter is not None else Prompter(interactive=False)
        owners[name] = asker.choose(
            f"Alias '{name}' is defined by {', '.join(claimants)}. Which app should own it?",
            claimants,
            default=claimants[-1],
            subject=name,
        )
    return owners


def duplicate_aliases(bundles: list[Bundle]) -> list[str]:
    """Alias names defined by more than one bundle, sorted."""
    seen: dict[str, int] = {}
    for bundle in bundles:
        if bundle.shell is not None:
            for name in bundle.shell.aliases:
                seen[name] = seen.get(name, 0) + 1
    return sorted(name for name, count in seen.items() if count > 1)


def _indent(body: str) -> str:
    return "\n".join(f"  {line}" if line.strip() else "" for line in body.strip().splitlines())


def _section(title: str, lines: list[str]) -> list[str]:
    if not lines:
        return []
    return ["", f"# {title}", *lines]


def render(
    bundles: list[Bundle],
    shell: ShellType,
    global_aliases: dict[str, str] | None = None,
    *,
    strategy: AliasStrategy = "last_wins",
    prompter: Prompter | None = None,
) -> str:
    """Render the init script.

    Args:
        bundles: Bundles in dependency order.
        shell: Target shell.
        global_aliases: Aliases from ``aliases.yaml``, emitted last.
        strategy: Duplicate alias strategy.
        prompter: Asks the user under the ``prompt`` strategy.

    Returns:
        Script text ending in a newline.
    """
    owners = resolve_alias_owners(bundles, strategy, prompter)

    env: list[str] = []
    aliases: list[str] = []
    functions: list[str] = []
    init: list[str] = []
    completions: list[str] = []

    for bundle in bundles:
        spec = bundle.shell
        if spec is None:
            continue
        env.extend(f"export {key}={quote_double(value)}" for key, value in sorted(spec.env.items()))
        aliases.extend(
            alias_line(name, command)
            for name, command in sorted(spec.aliases.items())
            if owners.get(name) == bundle.name
        )
        for name, body in sorted(spec.functions.items()):
            functions.append(f"{name}() {{\n{_indent(body)}\n}}")

        for snippet in spec.init:
            body = snippet.for_shell(shell.value)
            if not body:
                continue
            text = body.strip()
            if snippet.guard:
                text = f"if {snippet.guard}; then\n{_indent(text)}\nfi"
            init.append(f"# {bundle.name}: {snippet.name}\n{text}")

        if spec.completions is not None and shell != ShellType.UNKNOWN:
            command = getattr(spec.completions, shell.value)
            if command:
                completions.append(f"source <({command.strip()})")

    lines = [shell.shebang, BANNER]
    lines += _section("Environment", env)
    lines += _section("Aliases", aliases)
    lines += _section("Functions", functions)
    lines += _section("Init", init)
    lines += _section("Completions", completions)
    lines += _section(
        "Global aliases",
        [alias_line(name, command) for name, command in sorted((global_aliases or {}).items())],
    )
    return "\n".join(lines) + "\n"


def write_script(path: Path, content: str, mode: int = 0o644) -> Path:
    """Write ``content`` to ``path`` atomically.

    Raises:
        FilesystemError: If the file cannot be written.
    """
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            f.write(content)
        os.chmod(tmp_path, mode)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise FilesystemError(f"Failed to write {path}: {e}", subject=str(path)) from e
    return path


def generate(
    bundles: list[Bundle],
    shell: ShellType,
    output_path: Path,
    global_aliases: dict[str, str] | None = None,
    *,
    strategy: AliasStrategy = "last_wins",
    prompter: Prompter | None = None,
) -> Path:
    """Render the init script and write it to ``output_path``."""
    content = render(bundles, shell, global_aliases, strategy=strategy, prompter=prompter)
    write_script(output_path, content, 0o755)
    logger.info("Generated %s init script at %s", shell.value, output_path)
    return output_path


def export_aliases(
    bundles: list[Bundle],
    global_aliases: dict[str, str] | None,
    output_path: Path,
) -> Path:
    """Write a standalone aliases file for users leaving dotctl.

    Bundle aliases are listed per app (later apps win on duplicates),
    followed by the global aliases.
    """
    owners = resolve_alias_owners(bundles)
    lines = [EXPORT_HEADER]
    for bundle in bundles:
        if bundle.shell is None:
            continue
        own = [
            alias_line(name, command)
            for name, command in sorted(bundle.shell.aliases.items())
            if owners.get(name) == bundle.name
        ]
        if own:
            lines += ["", f"# {bundle.name}", *own]
    if global_aliases:
        lines += ["", "# global"]
        lines += [alias_line(name, command) for name, command in sorted(global_aliases.items())]

    write_script(output_path, "\n".join(lines) + "\n")
    logger.info("Exported aliases to %s", output_path)
    return output_path
