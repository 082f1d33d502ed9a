"""User prompts with an explicit non-interactive mode.

Every code path that may need a decision from the user receives a
Prompter. In non-interactive mode any prompt raises
NonInteractiveStopError instead of blocking on stdin.
"""

import logging

import typer

from dotctl.core.errors import NonInteractiveStopError

logger = logging.getLogger(__name__)


class Prompter:
    """Asks the user questions on the terminal.

    Args:
        interactive: If False, every prompt raises NonInteractiveStopError.
    """

    def __init__(self, interactive: bool = True) -> None:
        self.interactive = interactive

    def _stop(self, question: str, subject: str | None) -> NonInteractiveStopError:
        logger.debug("Prompt required in non-interactive mode: %s", question)
        return NonInteractiveStopError(
            f"input required but running non-interactively: {question}",
            subject=subject,
            hint="Re-run interactively or pass flags that answer the question.",
        )

    def confirm(self, question: str, *, default: bool = False, subject: str | None = None) -> bool:
        """Ask a yes/no question.

        Raises:
            NonInteractiveStopError: In non-interactive mode.
        """
        if not self.interactive:
            raise self._stop(question, subject)
        return typer.confirm(question, default=default)

    def choose(
        self,
        question: str,
        choices: list[str],
        *,
        default: str | None = None,
        subject: str | None = None,
    ) -> str:
        """Ask the user to pick one of ``choices``.

        Raises:
            NonInteractiveStopError: In non-interactive mode.
        """
        if not self.interactive:
            raise self._stop(question, subject)
        prompt = f"{question} [{'/'.join(choices)}]"
        while True:
            answer = str(typer.prompt(prompt, default=default)).strip()
            if answer in choices:
                return answer
            typer.echo(f"Please answer one of: {', '.join(choices)}")
