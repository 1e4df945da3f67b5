"""Fixtures for eventlog unit tests."""

from __future__ import annotations

import pytest

from eventlog import config as config_module
from eventlog.config import load_settings
from eventlog.handlers import CaptureHandler
from eventlog.logger import Logger, reset_default_logger

from tests.utils.logging import reset_logging_metrics


def pytest_collection_modifyitems(config, items):  # pragma: no cover - Pytest hook
    """Tag every test in this directory with the `logging` marker."""

    for item in items:
        item.add_marker(pytest.mark.logging)


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """Reset logging globals (default logger, settings and metrics) around each test."""

    reset_default_logger()
    config_module.reset_settings()
    reset_logging_metrics()
    yield
    reset_default_logger()
    config_module.reset_settings()
    reset_logging_metrics()


@pytest.fixture
def logging_settings():
    """Provide deterministic settings with no default handlers."""

    return load_settings(
        {
            "LOG_QUEUE_SIZE": "100",
            "LOG_HANDLERS": "none",
        }
    )


@pytest.fixture
def logger(logging_settings):
    """Test-scoped logger, stopped on teardown."""

    instance = Logger(logging_settings)
    yield instance
    instance.stop()


@pytest.fixture
def capture(logger):
    """Capture handler registered on the test logger as ``capture``."""

    handler = CaptureHandler()
    logger.add_handler("capture", handler)
    return handler
