"""Repository client library for remote site content.

This package provides Python abstractions over a GitHub-compatible REST API,
exposing one branch of a repository as a virtual filesystem with atomic,
single-commit multi-file writes, deletes and renames.
"""

from .errors import (
    SyncError,
    RepoError,
    NotFoundError,
    AlreadyExistsError,
    ConflictError,
    DataLossRiskError,
    TransportError,
    InvalidCredentialsError,
    APIUnreachableError,
    APIAccessError,
)
from .models import RepositoryRef, TreeEntry, PendingEdit, CommitResult
from .content_store import RemoteContentStore, TreeSnapshot

__all__ = [
    "SyncError",
    "RepoError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConflictError",
    "DataLossRiskError",
    "TransportError",
    "InvalidCredentialsError",
    "APIUnreachableError",
    "APIAccessError",
    "RepositoryRef",
    "TreeEntry",
    "PendingEdit",
    "CommitResult",
    "RemoteContentStore",
    "TreeSnapshot",
]
