"""YAML frontmatter parsing and generation for markdown pages.

This module handles reading and writing YAML frontmatter in page files.
New pages are created with a ``title`` and ``date`` field; existing pages
keep every field they already have.
"""

import re
from datetime import date
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import FrontmatterError


class FrontmatterHandler:
    """Handles YAML frontmatter operations for markdown pages.

    Frontmatter format:
        ---
        title: "About"
        date: 2024-01-15
        ---
        Page body...
    """

    FRONTMATTER_PATTERN = re.compile(
        r'^---[ \t]*\r?\n(.*?)\r?\n?---[ \t]*(?:\r?\n|$)',
        re.DOTALL
    )

    # Maximum nesting depth accepted in frontmatter
    MAX_YAML_DEPTH = 10

    @classmethod
    def _validate_yaml_depth(cls, obj: Any, current_depth: int = 0, max_depth: int = MAX_YAML_DEPTH) -> None:
        """Validate that YAML structure depth doesn't exceed maximum.

        Raises:
            FrontmatterError: If depth exceeds maximum
        """
        if current_depth > max_depth:
            raise FrontmatterError(
                "<yaml>",
                f"YAML structure exceeds maximum depth of {max_depth}"
            )

        if isinstance(obj, dict):
            for value in obj.values():
                cls._validate_yaml_depth(value, current_depth + 1, max_depth)
        elif isinstance(obj, list):
            for item in obj:
                cls._validate_yaml_depth(item, current_depth + 1, max_depth)

    @classmethod
    def parse(cls, file_path: str, content: str) -> Tuple[Dict[str, Any], str]:
        """Split a page into its frontmatter dict and markdown body.

        Pages without frontmatter yield an empty dict and the full content.

        Raises:
            FrontmatterError: If frontmatter is malformed or has invalid YAML
        """
        match = cls.FRONTMATTER_PATTERN.match(content)
        if not match:
            return {}, content

        try:
            metadata = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise FrontmatterError(file_path, f"Invalid YAML syntax: {str(e)}")

        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise FrontmatterError(
                file_path,
                f"Frontmatter must be a YAML dictionary, got {type(metadata).__name__}"
            )

        try:
            cls._validate_yaml_depth(metadata)
        except FrontmatterError as e:
            raise FrontmatterError(file_path, e.message)

        return metadata, content[match.end():]

    @classmethod
    def generate(cls, metadata: Dict[str, Any], body: str = "") -> str:
        """Render frontmatter followed by the markdown body."""
        if not metadata:
            return body

        frontmatter = yaml.safe_dump(
            metadata,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
        return f"---\n{frontmatter}---\n{body}"

    @classmethod
    def new_page(cls, title: str, body: str = "", today: Optional[date] = None) -> str:
        """Content for a freshly created page.

        Example:
            >>> FrontmatterHandler.new_page("About", today=date(2024, 1, 15))
            '---\\ntitle: About\\ndate: 2024-01-15\\n---\\n'
        """
        today = today or date.today()
        return cls.generate({'title': title, 'date': today}, body)
