"""Command-line interface for editing remote static sites.

This package provides the `sitesync` CLI tool: page tree browsing, page and
folder restructuring, asset upload and configuration editing against a site
repository, with rich terminal output and meaningful exit codes.
"""

from .models import ExitCode, BuildStatus, PublishStatus, DocumentRecord
from .config import DocumentStore
from .errors import (
    CLIError,
    RecordNotFoundError,
    StateError,
    StateFilesystemError,
)

__all__ = [
    'ExitCode',
    'BuildStatus',
    'PublishStatus',
    'DocumentRecord',
    'DocumentStore',
    'CLIError',
    'RecordNotFoundError',
    'StateError',
    'StateFilesystemError',
]
