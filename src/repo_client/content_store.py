"""Remote content store: the repository tree as a virtual filesystem.

This module exposes read/write/delete/rename operations over a remote
repository branch. Every mutating call produces exactly one commit built with
the git data API (blobs -> tree -> commit -> ref update), so no half-written
tree is ever visible on the branch.

Concurrency model is optimistic: when the branch moved between reading the
base and updating the ref, the commit is rebuilt on the new head and the ref
is force-updated once (last writer wins). A second conflict is surfaced.
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .api_wrapper import APIWrapper
from .auth import Authenticator
from .errors import ConflictError, NotFoundError
from .models import CommitResult, PendingEdit, RepositoryRef, TreeEntry

logger = logging.getLogger(__name__)

FilesArg = Union[Iterable[PendingEdit], Mapping[str, Union[str, bytes]]]
MappingsArg = Iterable[Union[Tuple[str, str], Mapping[str, str]]]


@dataclass
class TreeSnapshot:
    """Recursive listing of the branch head at one point in time."""
    head_sha: str
    tree_sha: str
    entries: List[TreeEntry] = field(default_factory=list)

    @property
    def blobs(self) -> Dict[str, TreeEntry]:
        return {entry.path: entry for entry in self.entries if entry.is_blob}

    def blobs_under(self, path: str) -> List[TreeEntry]:
        """Blobs at path itself or anywhere below it, in listing order."""
        prefix = f"{path.rstrip('/')}/"
        return [
            entry for entry in self.entries
            if entry.is_blob and (entry.path == path or entry.path.startswith(prefix))
        ]


def normalize_path(path: str) -> str:
    """Strip leading/trailing slashes and collapse empty segments."""
    return "/".join(part for part in str(path).split("/") if part)


class RemoteContentStore:
    """Virtual filesystem over one branch of a remote repository.

    Example:
        >>> store = RemoteContentStore.from_environment(RepositoryRef.parse("acme/site"))
        >>> store.write_many({"content/about.md": "# About"}, "Updated about")
        >>> [entry.path for entry in store.list_tree("content")]
    """

    MAX_CONFLICT_RETRIES = 1

    def __init__(self, api: APIWrapper):
        """Initialize the store.

        Args:
            api: API wrapper (or any object exposing the same primitives)
        """
        self._api = api

    @classmethod
    def from_environment(cls, repo: RepositoryRef) -> 'RemoteContentStore':
        """Build a store authenticated from SITESYNC_* environment variables."""
        return cls(APIWrapper(Authenticator(), repo))

    @property
    def repo(self) -> RepositoryRef:
        return self._api.repo

    def snapshot(self) -> TreeSnapshot:
        """Read the branch head and its recursive tree."""
        head_sha = self._api.get_ref()
        commit = self._api.get_commit(head_sha)
        tree_sha = commit['tree']['sha']
        tree = self._api.get_tree(tree_sha, recursive=True)

        entries = [
            TreeEntry(
                path=item['path'],
                type=item['type'],
                sha=item.get('sha', ''),
                size=item.get('size'),
                mode=item.get('mode', '100644'),
            )
            for item in tree.get('tree', [])
            if item.get('type') in ('blob', 'tree')
        ]
        return TreeSnapshot(head_sha=head_sha, tree_sha=tree_sha, entries=entries)

    def read_file(self, path: str) -> bytes:
        """Read one file.

        Raises:
            NotFoundError: If the path is missing or is a directory
        """
        path = normalize_path(path)
        data = self._api.get_content(path)
        if isinstance(data, list) or data.get('type') != 'file':
            raise NotFoundError(path)

        content = data.get('content') or ''
        if not content and data.get('size') and data.get('sha'):
            # Files over the contents API limit come back without inline content
            return self._api.get_blob(data['sha'])
        return base64.b64decode(content)

    def read_many(self, paths: Sequence[str]) -> Dict[str, bytes]:
        """Read several files from one snapshot; missing paths are skipped."""
        if not paths:
            return {}

        blobs = self.snapshot().blobs
        out: Dict[str, bytes] = {}
        for raw_path in paths:
            path = normalize_path(raw_path)
            entry = blobs.get(path)
            if entry is None:
                logger.debug(f"read_many: {path} not present, skipping")
                continue
            out[path] = self._api.get_blob(entry.sha)
        return out

    def exists(self, path: str) -> bool:
        """True if path is a file or a directory holding at least one file."""
        return bool(self.snapshot().blobs_under(normalize_path(path)))

    def list_tree(self, root: str = "") -> List[TreeEntry]:
        """Recursive listing of everything below root, in the host's order.

        Paths stay repository-root relative. A missing root yields an empty list.
        """
        root = normalize_path(root)
        entries = self.snapshot().entries
        if not root:
            return list(entries)

        prefix = f"{root}/"
        return [entry for entry in entries if entry.path.startswith(prefix)]

    def write_many(self, files: FilesArg, message: str) -> CommitResult:
        """Write all files in one commit (all-or-nothing).

        Raises:
            ValueError: If no files are given
            ConflictError: If the branch keeps moving after the forced retry
        """
        edits = self._coerce_edits(files)
        if not edits:
            raise ValueError("No files to write")

        # Blobs are content addressed, so they survive a rebuild after a conflict
        blob_shas = {edit.path: self._api.create_blob(edit.as_bytes()) for edit in edits}

        def build(snapshot: TreeSnapshot) -> List[Dict[str, Optional[str]]]:
            existing = snapshot.blobs
            return [
                {
                    'path': path,
                    'mode': existing[path].mode if path in existing else '100644',
                    'type': 'blob',
                    'sha': sha,
                }
                for path, sha in blob_shas.items()
            ]

        return self._commit(build, message, list(blob_shas))

    def delete_paths(self, paths: Sequence[str], message: str) -> CommitResult:
        """Delete files and whole subtrees in one commit.

        Raises:
            NotFoundError: If none of the paths hold any file
        """
        targets = [normalize_path(path) for path in paths if normalize_path(path)]
        if not targets:
            raise ValueError("No paths to delete")

        def build(snapshot: TreeSnapshot) -> List[Dict[str, Optional[str]]]:
            doomed: Dict[str, TreeEntry] = {}
            for target in targets:
                for entry in snapshot.blobs_under(target):
                    doomed[entry.path] = entry
            if not doomed:
                raise NotFoundError(targets[0])
            return [
                {'path': path, 'mode': entry.mode, 'type': 'blob', 'sha': None}
                for path, entry in doomed.items()
            ]

        return self._commit(build, message, targets)

    def rename_paths(self, mappings: MappingsArg, message: str) -> CommitResult:
        """Rename files in one commit.

        Renames reuse the existing blob, so content is never re-uploaded.

        Args:
            mappings: (source, destination) pairs or {"from": ..., "to": ...} dicts

        Raises:
            NotFoundError: If a source file is missing from the branch head
        """
        pairs = self._coerce_mappings(mappings)
        if not pairs:
            raise ValueError("No paths to rename")

        def build(snapshot: TreeSnapshot) -> List[Dict[str, Optional[str]]]:
            blobs = snapshot.blobs
            entries: List[Dict[str, Optional[str]]] = []
            destinations = {dst for _, dst in pairs}
            for src, dst in pairs:
                source = blobs.get(src)
                if source is None:
                    raise NotFoundError(src)
                entries.append({'path': dst, 'mode': source.mode, 'type': 'blob', 'sha': source.sha})
            for src, _ in pairs:
                if src not in destinations:
                    entries.append({'path': src, 'mode': blobs[src].mode, 'type': 'blob', 'sha': None})
            return entries

        touched = [path for pair in pairs for path in pair]
        return self._commit(build, message, touched)

    def _commit(
        self,
        build: Callable[[TreeSnapshot], List[Dict[str, Optional[str]]]],
        message: str,
        paths: List[str],
    ) -> CommitResult:
        """Build a tree on the current head, commit it and advance the branch."""
        forced = False
        for attempt in range(self.MAX_CONFLICT_RETRIES + 1):
            snapshot = self.snapshot()
            entries = build(snapshot)
            tree_sha = self._api.create_tree(snapshot.tree_sha, entries)
            commit_sha = self._api.create_commit(message, tree_sha, [snapshot.head_sha])

            try:
                self._api.update_ref(commit_sha, force=forced)
            except ConflictError:
                if attempt >= self.MAX_CONFLICT_RETRIES:
                    logger.error(
                        f"Branch {self.repo.branch} still moving after forced retry, "
                        f"giving up on commit '{message}'"
                    )
                    raise
                logger.warning(
                    f"Branch {self.repo.branch} moved since {snapshot.head_sha[:7]} "
                    f"(non fast-forward). Retrying with forced update."
                )
                forced = True
                continue

            logger.info(
                f"Committed {commit_sha[:7]} to {self.repo.full_name}@{self.repo.branch}: "
                f"{message} ({len(entries)} entr{'y' if len(entries) == 1 else 'ies'})"
            )
            return CommitResult(sha=commit_sha, message=message, paths=paths, forced=forced)

        raise ConflictError(f"Could not commit '{message}'", paths=paths)

    @staticmethod
    def _coerce_edits(files: FilesArg) -> List[PendingEdit]:
        if isinstance(files, Mapping):
            items = [PendingEdit(path=path, content=content) for path, content in files.items()]
        else:
            items = list(files)

        edits: Dict[str, PendingEdit] = {}
        for edit in items:
            path = normalize_path(edit.path)
            if not path:
                raise ValueError("File path cannot be empty")
            edits[path] = PendingEdit(path=path, content=edit.content, metadata=edit.metadata)
        return list(edits.values())

    @staticmethod
    def _coerce_mappings(mappings: MappingsArg) -> List[Tuple[str, str]]:
        pairs: List[Tuple[str, str]] = []
        for mapping in mappings:
            if isinstance(mapping, Mapping):
                src, dst = mapping['from'], mapping['to']
            else:
                src, dst = mapping
            src, dst = normalize_path(src), normalize_path(dst)
            if not src or not dst:
                raise ValueError("Rename source and destination cannot be empty")
            if src != dst:
                pairs.append((src, dst))
        return pairs
