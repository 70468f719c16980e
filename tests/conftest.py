"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

from src.repo_client.content_store import RemoteContentStore
from tests.fixtures.fake_host import FakeHost


@pytest.fixture(autouse=True)
def no_backoff_sleep(monkeypatch):
    """Rate-limit backoff never sleeps during tests."""
    monkeypatch.setattr("src.repo_client.retry_logic.time.sleep", lambda seconds: None)


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Undo handlers and levels installed by CLI invocations."""
    app_logger = logging.getLogger("src")
    level = app_logger.level
    handlers = list(app_logger.handlers)
    yield
    for handler in app_logger.handlers:
        if handler not in handlers:
            handler.close()
    app_logger.handlers[:] = handlers
    app_logger.setLevel(level)


@pytest.fixture
def host():
    """Empty in-memory repository host."""
    return FakeHost()


@pytest.fixture
def store(host):
    """Content store backed by the in-memory host."""
    return RemoteContentStore(host)
