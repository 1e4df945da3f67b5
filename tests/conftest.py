"""Top-level pytest configuration for eventlog tests."""

from __future__ import annotations

import pytest


def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover - configuration hook
    """Register global markers used across the repository."""

    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "logging: Event logger focused tests")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Ensure sensible default markers based on collection context."""

    for item in items:
        if not any(marker.name == "integration" for marker in item.iter_markers()):
            item.add_marker(pytest.mark.unit)
