"""Pytest configuration and fixtures for integration tests.

Integration tests drive several components together (content store, page
operations, configuration sessions) against one in-memory repository host.
"""

import pytest

from src.repo_client.content_store import RemoteContentStore
from tests.fixtures.fake_host import FakeHost
from tests.fixtures.sample_sites import CONTENT_SITE_FILES, DIRECTORY_SITE_FILES, SAMPLE_CONFIG_TOML


@pytest.fixture
def site_host():
    """A site with a root config.toml and a small page tree."""
    files = dict(CONTENT_SITE_FILES)
    files["config.toml"] = SAMPLE_CONFIG_TOML
    return FakeHost(files)


@pytest.fixture
def site_store(site_host):
    return RemoteContentStore(site_host)


@pytest.fixture
def directory_host():
    """A site whose configuration lives under config/ in several formats."""
    return FakeHost(DIRECTORY_SITE_FILES)


@pytest.fixture
def directory_store(directory_host):
    return RemoteContentStore(directory_host)
