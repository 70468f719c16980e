"""Typed exception hierarchy for CLI-related errors.

Everything raised by the command layer derives from CLIError, so commands
can report record problems next to repository and configuration errors.
"""

from typing import Optional

from src.repo_client.errors import SyncError


class CLIError(SyncError):
    """Base exception for all CLI-related errors."""
    pass


class RecordNotFoundError(CLIError):
    """Raised when no document record has been initialised."""

    def __init__(self, record_path: str):
        super().__init__(
            f"Document record not found at {record_path} (run 'sitesync init' first)"
        )
        self.record_path = record_path


class StateError(CLIError):
    """Raised when the document record is malformed."""

    def __init__(self, reason: str, state_field: Optional[str] = None):
        where = f" (field '{state_field}')" if state_field else ""
        super().__init__(f"Invalid document record{where}: {reason}")
        self.state_field = state_field
        self.reason = reason


class StateFilesystemError(CLIError):
    """Raised when the document record file cannot be read or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        super().__init__(
            f"Cannot {operation.replace('_', ' ')} {file_path}" + (f": {reason}" if reason else "")
        )
        self.file_path = file_path
        self.operation = operation
        self.reason = reason
