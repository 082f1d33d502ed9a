"""Fixtures for CLI tests."""

from pathlib import Path

import pytest
from dotctl.core.paths import RepoPaths


@pytest.fixture
def cli_env(paths: RepoPaths, home: Path) -> dict[str, str]:
    """Environment pointing the CLI at the temporary repository and home."""
    return {
        "DOTCTL_DIR": str(paths.root),
        "HOME": str(home),
        "SHELL": "/bin/bash",
        "NO_COLOR": "1",
    }
