"""Data models for the content tree.

This module defines all data models used by the content tree library.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from typing import List, Literal, Optional

from src.repo_client.models import CommitResult


@dataclass
class TreeNode:
    """Represents a file or directory in the virtual repository tree.

    A directory whose listing contains an index file (``_index.*`` or
    ``index.*``) is addressable as a page through that file; the index is
    then recorded in ``index_path`` and excluded from ``children``.

    Attributes:
        name: Last path segment
        path: Repository-root relative path (unique within one snapshot)
        type: "file" or "directory"
        sha: Content hash reported by the host (node identity for UI diffing)
        size: File size in bytes (None for directories)
        children: Child nodes in listing order (directories only)
        index_path: Path of the index file when the directory is a page bundle
    """
    name: str
    path: str
    type: Literal['file', 'directory']
    sha: str = ""
    size: Optional[int] = None
    children: List['TreeNode'] = field(default_factory=list)
    index_path: Optional[str] = None

    @property
    def node_id(self) -> str:
        return self.sha or self.path

    @property
    def is_directory(self) -> bool:
        return self.type == 'directory'

    @property
    def is_page(self) -> bool:
        """Leaf files and bundle directories are addressable pages."""
        return not self.is_directory or self.index_path is not None

    @property
    def content_path(self) -> Optional[str]:
        """Path of the file holding this node's own page content."""
        if self.is_directory:
            return self.index_path
        return self.path


@dataclass
class PageNode:
    """A page-oriented view of a TreeNode for navigation.

    Attributes:
        id: Node identity (content hash, falling back to path)
        title: Human readable title derived from the file or folder name
        path: Structural path (folder for bundles, file for leaves)
        content_path: File holding the page content (None for plain folders)
        is_index: True when the page is a bundle backed by an index file
        children: Child pages in listing order
    """
    id: str
    title: str
    path: str
    content_path: Optional[str]
    is_index: bool = False
    children: List['PageNode'] = field(default_factory=list)


@dataclass
class OperationResult:
    """Successful outcome of a rename, delete, create or conversion.

    Attributes:
        operation: Operation name (e.g. "rename_folder", "convert_to_bundle")
        paths: Paths created or moved to by the operation
        removed_paths: Paths that no longer exist afterwards
        commits: Commits produced, in order
    """
    operation: str
    paths: List[str] = field(default_factory=list)
    removed_paths: List[str] = field(default_factory=list)
    commits: List[CommitResult] = field(default_factory=list)
