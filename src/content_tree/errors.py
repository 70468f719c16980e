"""Typed exception hierarchy for content tree errors.

This module defines all custom exceptions used by the content tree library.
All exceptions inherit from ContentTreeError for easy catching and include
descriptive messages with context to help with debugging.
"""

from typing import List, Optional

from src.repo_client.errors import SyncError


class ContentTreeError(SyncError):
    """Base exception for all content tree errors."""
    pass


class InvalidPathError(ContentTreeError):
    """Raised when a page or folder path cannot be used for the requested operation."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid path '{path}': {reason}")
        self.path = path
        self.reason = reason


class FrontmatterError(ContentTreeError):
    """Raised when YAML frontmatter parsing or validation fails."""

    def __init__(self, file_path: str, message: str):
        super().__init__(
            f"Frontmatter error in {file_path}: {message}"
        )
        self.file_path = file_path
        self.message = message


class BundleConversionError(ContentTreeError):
    """Raised when converting a leaf page into a bundle stops part-way.

    The original leaf is never deleted when this is raised. Files created
    before the failing step are listed in ``leftover_paths``.
    """

    def __init__(
        self,
        leaf_path: str,
        step: str,
        reason: str,
        leftover_paths: Optional[List[str]] = None
    ):
        message = f"Converting '{leaf_path}' to a bundle failed at step '{step}': {reason}"
        if leftover_paths:
            message += f" (left in place: {', '.join(leftover_paths)})"
        super().__init__(message)
        self.leaf_path = leaf_path
        self.step = step
        self.reason = reason
        self.leftover_paths = list(leftover_paths or [])
