"""Unit tests for the Prompter."""

from unittest.mock import patch

import pytest
from dotctl.core.errors import ExitCode, NonInteractiveStopError
from dotctl.core.prompt import Prompter


class TestNonInteractive:
    """Prompts never block when interactive mode is off."""

    def test_confirm_raises(self) -> None:
        """confirm raises NonInteractiveStopError with exit code 4."""
        with pytest.raises(NonInteractiveStopError) as exc_info:
            Prompter(interactive=False).confirm("Proceed?", subject="~/.zshrc")

        assert exc_info.value.exit_code == ExitCode.NON_INTERACTIVE_STOP
        assert exc_info.value.subject == "~/.zshrc"

    def test_choose_raises(self) -> None:
        """choose raises too."""
        with pytest.raises(NonInteractiveStopError, match="Which one"):
            Prompter(interactive=False).choose("Which one?", ["a", "b"])


class TestInteractive:
    """Interactive prompts go through typer."""

    def test_confirm(self) -> None:
        """confirm returns the typer answer."""
        with patch("dotctl.core.prompt.typer.confirm", return_value=True) as mock_confirm:
            assert Prompter().confirm("Proceed?") is True

        mock_confirm.assert_called_once_with("Proceed?", default=False)

    def test_choose_repeats_until_valid(self) -> None:
        """Invalid answers are asked again."""
        with (
            patch("dotctl.core.prompt.typer.prompt", side_effect=["c", " b "]),
            patch("dotctl.core.prompt.typer.echo") as mock_echo,
        ):
            assert Prompter().choose("Which one?", ["a", "b"]) == "b"

        mock_echo.assert_called_once()
