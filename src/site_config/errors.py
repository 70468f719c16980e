"""Typed exception hierarchy for site configuration errors.

This module defines all custom exceptions used by the configuration pipeline.
Per-file errors (ParseError, SerializeError) are collected and reported in
aggregate; they never abort a whole load.
"""

from typing import List, Optional

from src.repo_client.errors import SyncError


class SiteConfigError(SyncError):
    """Base exception for all site configuration errors."""
    pass


class ConfigFileError(SiteConfigError):
    """Raised (or collected) when one configuration file cannot be processed."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Config operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ParseError(ConfigFileError):
    """Raised when a configuration file cannot be parsed in its format."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(file_path, 'parse', reason)


class SerializeError(ConfigFileError):
    """Raised when a configuration document cannot be rendered in its format."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(file_path, 'serialize', reason)


class FlatKeyError(SiteConfigError):
    """Raised when a flat namespace key has no recoverable file path."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Invalid flat key '{key}': {reason}")
        self.key = key
        self.reason = reason


class ConfigNotFoundError(SiteConfigError):
    """Raised when neither a root config file nor a config directory exists."""

    def __init__(self, probed: List[str]):
        super().__init__(
            f"No configuration files found (tried {', '.join(probed)})"
        )
        self.probed = list(probed)


class ConfigNotReadyError(SiteConfigError):
    """Raised when configuration is requested before the site has built."""

    def __init__(self, document_id: str, build_status: Optional[str]):
        super().__init__(
            f"Configuration for '{document_id}' is not available until the site "
            f"has built (build status: {build_status or 'unknown'})"
        )
        self.document_id = document_id
        self.build_status = build_status


class SaveError(SiteConfigError):
    """Raised when regenerated files cannot be committed."""

    def __init__(self, message: str, failed_paths: Optional[List[str]] = None):
        if failed_paths:
            message = f"{message} (paths: {', '.join(failed_paths)})"
        super().__init__(message)
        self.failed_paths = list(failed_paths or [])
