"""Rename, delete, page creation and bundle conversion over the content store.

This module implements the structural page operations:
- File rename: identical content at the new path, old path removed, one commit
- Folder rename: every blob under the old prefix moved by prefix substitution,
  old subtree removed, one commit
- Page / section creation with frontmatter
- Page loading and frontmatter (page settings) edits that keep the body intact
- Leaf -> bundle conversion: ``<base>/_index.<ext>`` with the original content,
  then the new child page, then removal of the original leaf, strictly in
  that order. A failure before the last step leaves extra files behind but
  never loses the original content.
"""

import logging
import posixpath
from typing import Any, Dict, List, Optional, Tuple

from src.repo_client.content_store import RemoteContentStore, normalize_path
from src.repo_client.errors import (
    AlreadyExistsError,
    ConflictError,
    DataLossRiskError,
    NotFoundError,
    RepoError,
)
from src.repo_client.models import PendingEdit
from .errors import BundleConversionError, InvalidPathError
from .frontmatter_handler import FrontmatterHandler
from .models import OperationResult
from .title_converter import TitleConverter
from .tree_builder import is_index_file

logger = logging.getLogger(__name__)

CONTENT_ROOT = "content"
KNOWN_ROOTS = ("content", "config", "static", "assets")


def resolve_content_path(path: str) -> str:
    """Anchor a user supplied path under content/ unless it names a known root.

    Examples:
        >>> resolve_content_path("blog/post.md")
        'content/blog/post.md'
        >>> resolve_content_path("static/img/logo.png")
        'static/img/logo.png'
    """
    normalized = normalize_path(path)
    if not normalized:
        raise InvalidPathError(path, "path is empty")
    if '..' in normalized.split('/'):
        raise InvalidPathError(path, "parent directory references are not allowed")

    first = normalized.split('/', 1)[0]
    if first in KNOWN_ROOTS:
        return normalized
    return f"{CONTENT_ROOT}/{normalized}"


def describe_paths(paths: List[str]) -> str:
    """Readable list of page names for commit messages.

    Example:
        >>> describe_paths(["content/blog/my_post.md", "content/about.md"])
        'content, blog, my post and content, about'
    """
    names = [
        path[:-3].replace('/', ', ').replace('_', ' ') if path.endswith('.md')
        else path.replace('/', ', ').replace('_', ' ')
        for path in paths
    ]
    if len(names) <= 1:
        return names[0] if names else ""
    return f"{', '.join(names[:-1])} and {names[-1]}"


class RenameEngine:
    """Structural page operations against a RemoteContentStore.

    Example:
        >>> engine = RenameEngine(store)
        >>> engine.rename_path("content/blog", "content/articles", item_type="folder")
        >>> engine.convert_to_bundle("content/about.md", "team")
    """

    def __init__(self, store: RemoteContentStore):
        """Initialize the engine.

        Args:
            store: Content store used for every read and commit
        """
        self._store = store

    def rename_path(
        self,
        old_path: str,
        new_path: str,
        item_type: Optional[str] = None,
        overwrite: bool = False,
    ) -> OperationResult:
        """Rename a file or folder, detecting the type when not given."""
        old_path = resolve_content_path(old_path)
        new_path = resolve_content_path(new_path)

        if item_type is None:
            blobs = self._store.snapshot().blobs
            item_type = 'file' if old_path in blobs else 'folder'

        if item_type == 'file':
            return self.rename_file(old_path, new_path, overwrite=overwrite)
        if item_type == 'folder':
            return self.rename_folder(old_path, new_path, overwrite=overwrite)
        raise ValueError(f"Unknown item type '{item_type}' (expected 'file' or 'folder')")

    def rename_file(self, old_path: str, new_path: str, overwrite: bool = False) -> OperationResult:
        """Move one file to a new path in a single commit.

        Raises:
            NotFoundError: If the source file does not exist
            AlreadyExistsError: If the destination exists and overwrite is False
            ConflictError: If the source vanished between read and commit
        """
        old_path = resolve_content_path(old_path)
        new_path = resolve_content_path(new_path)
        if old_path == new_path:
            raise InvalidPathError(new_path, "source and destination are the same")

        snapshot = self._store.snapshot()
        if old_path not in snapshot.blobs:
            raise NotFoundError(old_path)
        if not overwrite and snapshot.blobs_under(new_path):
            raise AlreadyExistsError(new_path)

        logger.info(f"Renaming file {old_path} -> {new_path}")
        try:
            commit = self._store.rename_paths(
                [(old_path, new_path)],
                f"Rename {old_path} to {new_path}"
            )
        except NotFoundError as e:
            raise ConflictError(
                f"'{old_path}' disappeared while it was being renamed",
                paths=[old_path]
            ) from e

        return OperationResult(
            operation='rename_file',
            paths=[new_path],
            removed_paths=[old_path],
            commits=[commit],
        )

    def rename_folder(self, old_path: str, new_path: str, overwrite: bool = False) -> OperationResult:
        """Move every blob under old_path to new_path in a single commit.

        Raises:
            NotFoundError: If nothing exists under old_path
            AlreadyExistsError: If any destination exists and overwrite is False
            InvalidPathError: If new_path lies inside old_path
        """
        old_prefix = resolve_content_path(old_path)
        new_prefix = resolve_content_path(new_path)
        if old_prefix == new_prefix:
            raise InvalidPathError(new_prefix, "source and destination are the same")
        if new_prefix.startswith(f"{old_prefix}/"):
            raise InvalidPathError(new_prefix, f"cannot move '{old_prefix}' into itself")

        snapshot = self._store.snapshot()
        blobs = snapshot.blobs_under(old_prefix)
        if not blobs:
            raise NotFoundError(old_prefix)

        mappings = [
            (blob.path, new_prefix + blob.path[len(old_prefix):])
            for blob in blobs
        ]

        if not overwrite:
            existing = snapshot.blobs
            clashes = [dst for _, dst in mappings if dst in existing]
            if clashes:
                raise AlreadyExistsError(clashes[0])

        logger.info(
            f"Renaming folder {old_prefix} -> {new_prefix} ({len(mappings)} file(s))"
        )
        for src, dst in mappings:
            logger.debug(f"  {src} -> {dst}")

        try:
            commit = self._store.rename_paths(mappings, f"Rename {old_prefix} to {new_prefix}")
        except NotFoundError as e:
            raise ConflictError(
                f"Files under '{old_prefix}' changed while the folder was being renamed",
                paths=[e.path]
            ) from e

        return OperationResult(
            operation='rename_folder',
            paths=[dst for _, dst in mappings],
            removed_paths=[src for src, _ in mappings],
            commits=[commit],
        )

    def delete_path(self, path: str) -> OperationResult:
        """Delete a file or a whole folder in one commit.

        Raises:
            NotFoundError: If nothing exists at path
        """
        target = resolve_content_path(path)
        removed = [blob.path for blob in self._store.snapshot().blobs_under(target)]
        if not removed:
            raise NotFoundError(target)

        logger.info(f"Deleting {target} ({len(removed)} file(s))")
        commit = self._store.delete_paths([target], f"Delete {target}")
        return OperationResult(operation='delete', removed_paths=removed, commits=[commit])

    def write_pages(self, pages: Dict[str, str]) -> OperationResult:
        """Write edited page bodies in one commit.

        Args:
            pages: Mapping of page path to full file text (frontmatter included)
        """
        if not pages:
            raise ValueError("No pages to write")
        edits = [PendingEdit(path=resolve_content_path(path), content=text) for path, text in pages.items()]
        paths = [edit.path for edit in edits]
        commit = self._store.write_many(edits, f"Updated {describe_paths(paths)}")
        return OperationResult(operation='write_pages', paths=paths, commits=[commit])

    def _page_file(self, path: str) -> str:
        """File holding a page: the path itself, or a bundle's index file."""
        target = resolve_content_path(path)
        blobs = self._store.snapshot().blobs
        if target in blobs:
            return target
        for name in ('_index.md', 'index.md'):
            if f"{target}/{name}" in blobs:
                return f"{target}/{name}"
        raise NotFoundError(target)

    def _read_text(self, path: str) -> str:
        try:
            return self._store.read_file(path).decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidPathError(path, "not a text page") from e

    def read_page(self, path: str) -> Tuple[Dict[str, Any], str]:
        """Load a page as (frontmatter, body).

        A folder path resolves to its ``_index.md`` / ``index.md``.

        Raises:
            NotFoundError: If no page exists at path
            FrontmatterError: If the frontmatter is not a valid YAML mapping
        """
        page_path = self._page_file(path)
        return FrontmatterHandler.parse(page_path, self._read_text(page_path))

    def update_page_settings(self, path: str, metadata: Dict[str, Any]) -> OperationResult:
        """Replace a page's frontmatter, keeping its body byte for byte.

        No commit is made when the regenerated text equals the current file.
        """
        page_path = self._page_file(path)
        current = self._read_text(page_path)
        _, body = FrontmatterHandler.parse(page_path, current)
        updated = FrontmatterHandler.generate(metadata, body)
        if updated == current:
            logger.info(f"Page settings of {page_path} unchanged")
            return OperationResult(operation='update_page_settings', paths=[page_path])

        commit = self._store.write_many(
            [PendingEdit(path=page_path, content=updated, metadata=dict(metadata))],
            f"Updated {describe_paths([page_path])}"
        )
        return OperationResult(operation='update_page_settings', paths=[page_path], commits=[commit])

    def upload_file(self, path: str, data: bytes) -> OperationResult:
        """Upload a binary file, e.g. an image under static/."""
        target = resolve_content_path(path)
        logger.info(f"Uploading {target} ({len(data)} bytes)")
        commit = self._store.write_many([PendingEdit(path=target, content=data)], f"Upload {target}")
        return OperationResult(operation='upload', paths=[target], commits=[commit])

    def create_page(
        self,
        parent: str,
        name: str,
        body: str = "",
        as_section: bool = False,
        fail_if_exists: bool = True,
    ) -> OperationResult:
        """Create a new page (``<parent>/<slug>.md``) or section (``<parent>/<slug>/_index.md``).

        Raises:
            AlreadyExistsError: If the page exists and fail_if_exists is True
        """
        slug = TitleConverter.name_to_slug(name)
        parent_path = resolve_content_path(parent) if normalize_path(parent) else CONTENT_ROOT
        if as_section:
            path = f"{parent_path}/{slug}/_index.md"
        else:
            path = f"{parent_path}/{slug}.md"

        if fail_if_exists and self._store.exists(path):
            raise AlreadyExistsError(path)

        content = FrontmatterHandler.new_page(name, body)
        logger.info(f"Creating {'section' if as_section else 'page'} {path}")
        commit = self._store.write_many(
            [PendingEdit(path=path, content=content, metadata={'title': name})],
            f"Create file: {path}"
        )
        return OperationResult(operation='create_page', paths=[path], commits=[commit])

    def convert_to_bundle(
        self,
        leaf_path: str,
        child_name: str,
        child_body: str = "",
    ) -> OperationResult:
        """Turn a leaf page into a bundle and add its first child page.

        Steps, strictly ordered, each its own commit:
        1. create ``<base>/_index.<ext>`` holding the leaf's exact content
        2. create ``<base>/<child>.<ext>``
        3. delete the original leaf

        The original is only deleted once both new files are confirmed on the
        branch; otherwise the operation stops and reports what was left behind.

        Raises:
            NotFoundError: If the leaf does not exist
            AlreadyExistsError: If the bundle index or child already hold content
            BundleConversionError: If step 1 or 2 fails (original untouched)
            DataLossRiskError: If the new index cannot be confirmed before deletion
            ConflictError: If the leaf changed or vanished before step 3
        """
        leaf_path = resolve_content_path(leaf_path)
        leaf_name = posixpath.basename(leaf_path)
        if is_index_file(leaf_name):
            raise InvalidPathError(leaf_path, "index files already belong to a bundle")

        base, ext = posixpath.splitext(leaf_path)
        if not ext:
            raise InvalidPathError(leaf_path, "leaf page has no file extension")

        index_path = f"{base}/_index{ext}"
        child_path = f"{base}/{TitleConverter.name_to_slug(child_name)}{ext}"

        snapshot = self._store.snapshot()
        leaf_entry = snapshot.blobs.get(leaf_path)
        if leaf_entry is None:
            raise NotFoundError(leaf_path)
        for destination in (index_path, child_path):
            if snapshot.blobs_under(destination):
                raise AlreadyExistsError(destination)

        original = self._store.read_file(leaf_path)
        commits = []
        created: List[str] = []

        logger.info(f"Converting {leaf_path} into bundle {base}/ with child {child_path}")

        try:
            commits.append(self._store.write_many(
                [PendingEdit(path=index_path, content=original)],
                f"Create file: {index_path}"
            ))
        except RepoError as e:
            logger.error(f"Bundle conversion of {leaf_path} stopped creating {index_path}: {e}")
            raise BundleConversionError(leaf_path, 'create_index', str(e)) from e
        created.append(index_path)

        try:
            commits.append(self._store.write_many(
                [PendingEdit(
                    path=child_path,
                    content=FrontmatterHandler.new_page(child_name, child_body),
                )],
                f"Create file: {child_path}"
            ))
        except RepoError as e:
            logger.error(
                f"Bundle conversion of {leaf_path} stopped creating {child_path}: {e}; "
                f"{index_path} left in place"
            )
            raise BundleConversionError(leaf_path, 'create_child', str(e), leftover_paths=created) from e
        created.append(child_path)

        self._confirm_before_delete(leaf_path, leaf_entry.sha, index_path, original, created)

        try:
            commits.append(self._store.delete_paths(
                [leaf_path],
                f"Delete {leaf_path} (moved to {index_path})"
            ))
        except NotFoundError as e:
            raise ConflictError(
                f"'{leaf_path}' vanished before it could be removed", paths=[leaf_path]
            ) from e

        return OperationResult(
            operation='convert_to_bundle',
            paths=created,
            removed_paths=[leaf_path],
            commits=commits,
        )

    def _confirm_before_delete(
        self,
        leaf_path: str,
        leaf_sha: str,
        index_path: str,
        original: bytes,
        created: List[str],
    ) -> None:
        """Check the branch still holds the copied content and the untouched leaf."""
        snapshot = self._store.snapshot()
        blobs = snapshot.blobs

        index_entry = blobs.get(index_path)
        if index_entry is None:
            raise DataLossRiskError(leaf_path, f"{index_path} is not on the branch")

        current_leaf = blobs.get(leaf_path)
        if current_leaf is None:
            raise ConflictError(
                f"'{leaf_path}' vanished during bundle conversion "
                f"(created: {', '.join(created)})",
                paths=[leaf_path]
            )
        if current_leaf.sha != leaf_sha:
            raise ConflictError(
                f"'{leaf_path}' changed during bundle conversion; not deleting it "
                f"(created: {', '.join(created)})",
                paths=[leaf_path]
            )
        if index_entry.sha != leaf_sha and self._store.read_file(index_path) != original:
            raise DataLossRiskError(leaf_path, f"{index_path} does not hold the original content")
