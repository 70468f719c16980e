"""Typed exception hierarchy for remote repository errors.

This module defines all custom exceptions used by the repository client.
All exceptions inherit from RepoError (itself a SyncError) for easy catching
and include descriptive messages with context to help with debugging.
"""

from typing import List, Optional


class SyncError(Exception):
    """Base exception for all sitesync errors.

    Use this to catch any application-level error from the tool.
    """
    pass


class RepoError(SyncError):
    """Base exception for all remote repository errors."""
    pass


class NotFoundError(RepoError):
    """Raised when a path, ref or blob does not exist in the remote tree.

    Discovery code treats this as a normal, non-fatal probe outcome.
    """

    def __init__(self, path: str):
        super().__init__(f"Path '{path}' not found in repository")
        self.path = path


class AlreadyExistsError(RepoError):
    """Raised when a destination already holds content and overwrite is disallowed."""

    def __init__(self, path: str):
        super().__init__(f"Path '{path}' already exists")
        self.path = path


class ConflictError(RepoError):
    """Raised when the remote branch moved since the base of an operation."""

    def __init__(self, message: str, paths: Optional[List[str]] = None):
        super().__init__(message)
        self.paths = list(paths or [])


class DataLossRiskError(RepoError):
    """Raised when an operation would delete a source before its replacement is confirmed.

    Operations raising this are refused outright and never retried.
    """

    def __init__(self, source_path: str, reason: str):
        super().__init__(
            f"Refusing to remove '{source_path}': {reason}"
        )
        self.source_path = source_path
        self.reason = reason


class TransportError(RepoError):
    """Base exception for network, authentication and host API failures."""
    pass


class InvalidCredentialsError(TransportError):
    """Raised when the API token is missing, invalid, or lacks access."""

    def __init__(self, endpoint: str, reason: Optional[str] = None):
        message = f"API token is invalid or missing (endpoint: {endpoint})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.endpoint = endpoint
        self.reason = reason


class APIUnreachableError(TransportError):
    """Raised when the repository host API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(TransportError):
    """Raised when API access fails after retries or for an unexpected status."""

    def __init__(self, message: str = "Repository API failure (after 3 retries)",
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
