"""
Global pytest configuration and fixtures.
"""

import logging
import os

import pytest

from schemaroute.core.config import SettingsModel
from schemaroute.telemetry import configure_tracing

ENV_VARS = (
    "SCHEMAROUTE_CONFIG",
    "SCHEMAROUTE_DEBUG",
    "SCHEMAROUTE_LOG_LEVEL",
    "SCHEMAROUTE_FAILURE_STATUS",
    "SCHEMAROUTE_TRACING",
)


@pytest.fixture(autouse=True)
def clean_environment():
    """Keep SCHEMAROUTE_* variables from the host out of every test."""
    saved = {name: os.environ.pop(name) for name in ENV_VARS if name in os.environ}
    yield
    for name in ENV_VARS:
        os.environ.pop(name, None)
    os.environ.update(saved)
    configure_tracing(False)


@pytest.fixture
def settings() -> SettingsModel:
    return SettingsModel(title="Test API", version="0.0.1")


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handlers and levels installed by CLI logging configuration."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
