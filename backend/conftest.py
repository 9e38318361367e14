"""Pytest collection helpers for backend test runs.

Lives at the backend/ root so it is loaded before any test module imports
the application and its settings.
"""
import pytest

from orderboard.core.config import settings


@pytest.fixture(scope="session", autouse=True)
def force_testing_mode():
    """Force TESTING=True and keep the mirror off unless a test opts in."""
    settings.TESTING = True
    settings.HYDRATE_ON_STARTUP = False


def pytest_collection_modifyitems(items):
    """Treat legacy pytest.mark.asyncio as anyio so tests run under the anyio plugin."""
    for item in items:
        if 'asyncio' in getattr(item, 'keywords', {}):
            item.add_marker(pytest.mark.anyio)
