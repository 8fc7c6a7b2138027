"""Configuration for pytest."""

import logging
from typing import Generator

import pytest

# Import fixtures to make them available to all tests
from pystackup.tests.e2e.fixtures import repo_ctx  # noqa: F401


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's toggles and GitHub token out of the run."""
    for var in ("DRY_RUN", "NO_PUSH", "VERBOSE", "GITHUB_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop handlers bound to CliRunner's streams once the test is over."""
    yield
    root = logging.getLogger()
    for handler in [h for h in root.handlers if type(h) is logging.StreamHandler]:
        root.removeHandler(handler)
