"""Root conftest for all tests - markers and shared fixtures."""
from __future__ import annotations

from pathlib import Path

import pytest

PROPERTY_DIR = Path(__file__).parent / "property"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "property: mark test as a hypothesis property test")


def pytest_collection_modifyitems(config, items):
    """Mark everything collected from tests/property as a property test."""
    for item in items:
        if PROPERTY_DIR in Path(item.path).parents:
            item.add_marker(pytest.mark.property)
