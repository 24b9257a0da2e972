"""Pytest configuration and fixtures for so-fetch tests.

This file provides:
- Fixtures: a recording mock transport handler and a client wired to it
- Hooks: every test is tagged as a unit test (no test touches the network)
"""

from __future__ import annotations

import pytest

from so_fetch.client import SoFetch
from tests.http_fixtures import RecordingHandler, make_client


@pytest.fixture
def handler() -> RecordingHandler:
    """Handler answering every request with 200 and an empty JSON object."""
    return RecordingHandler()


@pytest.fixture
def client(handler: RecordingHandler) -> SoFetch:
    """SoFetch rooted at http://api.test with no interceptors."""
    return make_client(handler)


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Tag every collected test with the unit marker (pytest -m unit)."""
    for item in items:
        item.add_marker(pytest.mark.unit)
