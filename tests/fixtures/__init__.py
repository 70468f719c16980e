"""Test fixtures shared by unit and integration tests.

This module provides:
- FakeHost: in-memory repository host with fault injection
- Sample site configuration files and schemas
"""

from .fake_host import FakeHost, git_blob_sha
from .sample_sites import (
    SAMPLE_CONFIG_TOML,
    SAMPLE_PARAMS_YAML,
    SAMPLE_MENUS_JSON,
    SAMPLE_SCHEMA,
    SAMPLE_UI_SCHEMA,
    DIRECTORY_SITE_FILES,
    CONTENT_SITE_FILES,
)

__all__ = [
    "FakeHost",
    "git_blob_sha",
    "SAMPLE_CONFIG_TOML",
    "SAMPLE_PARAMS_YAML",
    "SAMPLE_MENUS_JSON",
    "SAMPLE_SCHEMA",
    "SAMPLE_UI_SCHEMA",
    "DIRECTORY_SITE_FILES",
    "CONTENT_SITE_FILES",
]
