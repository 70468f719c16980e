"""Data models for the repository client.

This module defines all data models used by the repository client library.
All models use dataclasses for clean, type-safe data structures.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union


@dataclass(frozen=True)
class RepositoryRef:
    """Identity of a remote repository and the branch to operate on.

    Attributes:
        owner: Account or organisation owning the repository
        name: Repository name
        branch: Branch whose head is read and advanced (default "main")
    """
    owner: str
    name: str
    branch: str = "main"

    # owner/name[@branch], https://host/owner/name(.git), git@host:owner/name(.git)
    _SHORT_PATTERN = re.compile(r'^([\w.-]+)/([\w.-]+?)(?:@([\w./-]+))?$')
    _URL_PATTERN = re.compile(
        r'^(?:https?://[^/]+/|git@[^:]+:)([\w.-]+)/([\w.-]+?)(?:\.git)?/?$'
    )

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str, branch: Optional[str] = None) -> 'RepositoryRef':
        """Parse a repository reference from a short name or clone URL.

        Args:
            value: "owner/name", "owner/name@branch", an https URL or an ssh URL
            branch: Branch override (wins over an @branch suffix)

        Returns:
            RepositoryRef for the parsed value

        Raises:
            ValueError: If the value is not a recognised repository reference

        Examples:
            >>> RepositoryRef.parse("acme/site@preview")
            RepositoryRef(owner='acme', name='site', branch='preview')
            >>> RepositoryRef.parse("git@github.com:acme/site.git").full_name
            'acme/site'
        """
        text = (value or "").strip()
        match = cls._URL_PATTERN.match(text)
        if match:
            return cls(owner=match.group(1), name=match.group(2), branch=branch or "main")

        match = cls._SHORT_PATTERN.match(text)
        if match:
            return cls(
                owner=match.group(1),
                name=match.group(2),
                branch=branch or match.group(3) or "main",
            )

        raise ValueError(
            f"Invalid repository reference: '{value}'. "
            f"Expected owner/name[@branch] or a clone URL."
        )


@dataclass
class TreeEntry:
    """One entry of a recursive tree listing, as returned by the host.

    Attributes:
        path: Repository-root relative path (e.g. "content/blog/post.md")
        type: "blob" for files, "tree" for directories
        sha: Content hash of the blob or tree
        size: Blob size in bytes (None for trees)
        mode: Git file mode (e.g. "100644")
    """
    path: str
    type: Literal['blob', 'tree']
    sha: str = ""
    size: Optional[int] = None
    mode: str = "100644"

    @property
    def name(self) -> str:
        return self.path.rsplit('/', 1)[-1]

    @property
    def is_blob(self) -> bool:
        return self.type == 'blob'


@dataclass
class PendingEdit:
    """A file write staged for the next commit.

    Attributes:
        path: Repository-root relative path to write
        content: New file content (text is encoded as UTF-8)
        metadata: Free-form metadata carried alongside the edit (not written)
    """
    path: str
    content: Union[str, bytes]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def as_bytes(self) -> bytes:
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode('utf-8')


@dataclass
class CommitResult:
    """Outcome of one mutating call against the remote store.

    Attributes:
        sha: SHA of the commit the branch now points to
        message: Commit message
        paths: Paths touched by the commit
        forced: True if the branch update had to be forced after a conflict
    """
    sha: str
    message: str
    paths: List[str] = field(default_factory=list)
    forced: bool = False
