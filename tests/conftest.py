"""Pytest configuration and shared fixtures."""
from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest

from storcli_collector.storcli import StorcliClient
from payloads import storcli_dumps


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as end-to-end pipeline test"
    )


@pytest.fixture
def make_client():
    """Build a mocked StorcliClient serving the given payloads."""

    def factory(controllers: dict[str, Any] | bytes, drives: dict[str, Any] | None = None) -> Mock:
        client = Mock(spec=StorcliClient)
        client.controllers.return_value = (
            controllers if isinstance(controllers, bytes) else storcli_dumps(controllers)
        )
        client.drives.return_value = storcli_dumps(drives or {"Controllers": []})
        return client

    return factory
