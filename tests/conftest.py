"""Shared test configuration for PolyPay.

Fixtures live in ``tests/fixtures`` and are registered from the root-level
conftest.py.
"""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from polypay.core.logging import setup_logging


def pytest_configure(config: pytest.Config) -> None:
    setup_logging(level="DEBUG", fmt="plain", show_time=False)


@pytest.fixture(autouse=True)
def clean_log_context() -> Generator[None, None, None]:
    """Make sure bound context variables do not leak between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def isolated_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Strip POLYPAY_* variables and run from an empty directory.

    Prevents a developer's environment or ``.env`` file from leaking into
    configuration tests.
    """
    for key in list(os.environ):
        if key.upper().startswith("POLYPAY_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
