"""Content tree library for remote site pages.

This package builds a hierarchical, bundle-aware view of the remote content
tree and performs structural page operations (rename, delete, create,
leaf-to-bundle conversion) as atomic commits through the content store.
"""

from .models import TreeNode, PageNode, OperationResult
from .errors import (
    ContentTreeError,
    InvalidPathError,
    FrontmatterError,
    BundleConversionError,
)
from .tree_builder import TreeBuilder, is_index_file, is_page_file
from .rename_engine import RenameEngine, resolve_content_path
from .frontmatter_handler import FrontmatterHandler
from .title_converter import TitleConverter

__all__ = [
    'TreeNode',
    'PageNode',
    'OperationResult',
    'ContentTreeError',
    'InvalidPathError',
    'FrontmatterError',
    'BundleConversionError',
    'TreeBuilder',
    'is_index_file',
    'is_page_file',
    'RenameEngine',
    'resolve_content_path',
    'FrontmatterHandler',
    'TitleConverter',
]
