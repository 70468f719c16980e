"""Virtual tree builder for remote site content.

This module turns the flat, recursive listing returned by the content store
into a hierarchical TreeNode tree, recognising page bundles: a directory that
contains an ``_index.*`` or ``index.*`` file is a page whose content is that
file, and the index file is hidden from the directory's children.

Child order always follows the listing order; no extra sorting is applied.
"""

import logging
from typing import Dict, Iterable, List, Optional

from src.repo_client.content_store import RemoteContentStore, normalize_path
from src.repo_client.models import TreeEntry
from .models import PageNode, TreeNode
from .title_converter import TitleConverter

logger = logging.getLogger(__name__)

INDEX_STEMS = ('_index', 'index')
PAGE_EXTENSIONS = ('.md', '.markdown')
ASSET_ROOTS = ("static", "assets")


def is_index_file(name: str) -> bool:
    """True for bundle index files such as ``_index.md`` or ``index.html``."""
    if '.' not in name:
        return False
    return name.rsplit('.', 1)[0] in INDEX_STEMS


def is_page_file(name: str) -> bool:
    return name.lower().endswith(PAGE_EXTENSIONS)


class TreeBuilder:
    """Builds TreeNode hierarchies from content store listings.

    Example:
        >>> builder = TreeBuilder(store)
        >>> nodes = builder.build("content")
        >>> pages = builder.to_page_tree(nodes)
    """

    def __init__(self, store: Optional[RemoteContentStore] = None):
        """Initialize the tree builder.

        Args:
            store: Content store to list from (only needed for build())
        """
        self._store = store

    def build(self, root: str = "content") -> List[TreeNode]:
        """List the remote tree under root and build its hierarchy."""
        if self._store is None:
            raise ValueError("TreeBuilder.build() requires a content store")

        entries = self._store.list_tree(root)
        logger.debug(f"Building tree for '{root}' from {len(entries)} listing entries")
        return self.build_from_entries(entries, root)

    def list_assets(self) -> List[TreeNode]:
        """Asset trees from static/ and assets/, with top-level names prefixed by their root."""
        if self._store is None:
            raise ValueError("TreeBuilder.list_assets() requires a content store")

        entries = self._store.list_tree()
        merged: List[TreeNode] = []
        for root in ASSET_ROOTS:
            for node in self.build_from_entries(entries, root):
                node.name = f"{root}/{node.name}"
                merged.append(node)
        return merged

    @classmethod
    def build_from_entries(cls, entries: Iterable[TreeEntry], root: str = "") -> List[TreeNode]:
        """Build the hierarchy from a flat listing.

        Args:
            entries: Listing entries with repository-root relative paths
            root: Scope root; entries outside it are ignored

        Returns:
            Top-level nodes directly below root, in listing order
        """
        root = normalize_path(root)
        prefix = f"{root}/" if root else ""
        top_level: List[TreeNode] = []
        nodes: Dict[str, TreeNode] = {}

        def attach(node: TreeNode) -> None:
            parent_path = node.path.rsplit('/', 1)[0] if '/' in node.path else ""
            if parent_path == root:
                top_level.append(node)
            else:
                ensure_directory(parent_path).children.append(node)

        def ensure_directory(path: str) -> TreeNode:
            # Hosts may omit tree entries; synthesise missing parents
            existing = nodes.get(path)
            if existing is not None:
                return existing
            directory = TreeNode(name=path.rsplit('/', 1)[-1], path=path, type='directory')
            nodes[path] = directory
            attach(directory)
            return directory

        for entry in entries:
            path = normalize_path(entry.path)
            if not path.startswith(prefix) or path == root:
                continue

            existing = nodes.get(path)
            if existing is not None:
                if entry.type == 'tree' and existing.is_directory and not existing.sha:
                    existing.sha = entry.sha
                else:
                    logger.warning(f"Duplicate listing entry for {path}, keeping the first")
                continue

            node = TreeNode(
                name=path.rsplit('/', 1)[-1],
                path=path,
                type='directory' if entry.type == 'tree' else 'file',
                sha=entry.sha,
                size=entry.size if entry.type == 'blob' else None,
            )
            nodes[path] = node
            attach(node)

        for node in nodes.values():
            if node.is_directory:
                cls._promote_index(node)

        return top_level

    @staticmethod
    def _promote_index(directory: TreeNode) -> None:
        """Record the directory's index file and drop it from its children."""
        index = next(
            (child for child in directory.children
             if not child.is_directory and is_index_file(child.name)),
            None
        )
        if index is None:
            return

        directory.index_path = index.path
        directory.children = [child for child in directory.children if child is not index]

    @staticmethod
    def to_page_tree(nodes: List[TreeNode]) -> List[PageNode]:
        """Project a TreeNode hierarchy onto navigable pages.

        Directories become pages (bundles when they have an index), markdown
        files become leaf pages, other files are dropped. A loose index file at
        the top level is the site's Home Page.
        """
        pages: List[PageNode] = []
        for node in nodes:
            if node.is_directory:
                pages.append(PageNode(
                    id=node.node_id,
                    title=TitleConverter.filename_to_title(node.name),
                    path=node.path,
                    content_path=node.index_path,
                    is_index=node.index_path is not None,
                    children=TreeBuilder.to_page_tree(node.children),
                ))
            elif is_index_file(node.name):
                pages.append(PageNode(
                    id=node.node_id,
                    title=TitleConverter.HOME_TITLE,
                    path=node.path,
                    content_path=node.path,
                    is_index=True,
                ))
            elif is_page_file(node.name):
                pages.append(PageNode(
                    id=node.node_id,
                    title=TitleConverter.filename_to_title(node.name),
                    path=node.path,
                    content_path=node.path,
                ))
        return pages

    @staticmethod
    def build_page_map(pages: List[PageNode]) -> Dict[str, PageNode]:
        """Index pages by structural path for direct lookup."""
        page_map: Dict[str, PageNode] = {}

        def traverse(page: PageNode) -> None:
            page_map[page.path] = page
            for child in page.children:
                traverse(child)

        for page in pages:
            traverse(page)
        return page_map

    @staticmethod
    def find(nodes: List[TreeNode], path: str) -> Optional[TreeNode]:
        """Depth-first lookup of a node by path."""
        path = normalize_path(path)
        for node in nodes:
            if node.path == path:
                return node
            if node.is_directory and path.startswith(f"{node.path}/"):
                found = TreeBuilder.find(node.children, path)
                if found is not None:
                    return found
        return None
