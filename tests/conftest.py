"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from agentdeps.adapters.mock import MockDependencies
from agentdeps.core.config.loader import CONFIG_ENV_VAR, ENV_VARS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host's DRY_* / AGENTDEPS_* variables out of every test."""
    for var in (*ENV_VARS, CONFIG_ENV_VAR):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo setup_logging() calls made by CLI tests."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def mock_deps() -> MockDependencies:
    """A fresh in-memory dependency layer."""
    return MockDependencies(hostname="mock-host")


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
