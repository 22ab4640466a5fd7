# tests/conftest.py
"""Shared test setup for project."""

from collections.abc import Generator

import pytest

import psbundler.logs as mod_logs
from tests.utils import DEFAULT_TEST_LOG_LEVEL
from tests.utils.log_fixtures import (
    direct_logger,
    module_logger,
)


# These fixtures are intentionally re-exported so pytest can discover them.
__all__ = [
    "direct_logger",
    "module_logger",
]


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_logger_level() -> Generator[None, None, None]:
    """Reset logger level to DEFAULT_TEST_LOG_LEVEL before and after each test.

    The app logger is a module-level singleton that persists between tests,
    and main() changes its level from CLI args.
    """
    logger = mod_logs.get_app_logger()
    logger.setLevel(DEFAULT_TEST_LOG_LEVEL)
    yield
    logger.setLevel(DEFAULT_TEST_LOG_LEVEL)


@pytest.fixture(autouse=True)
def clean_log_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's LOG_LEVEL / color settings out of the tests."""
    for var in ("LOG_LEVEL", "PSBUNDLER_LOG_LEVEL", "PSBUNDLER_WATCH_INTERVAL"):
        monkeypatch.delenv(var, raising=False)
