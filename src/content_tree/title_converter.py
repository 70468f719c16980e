"""Conversion between page names, file names and display titles.

Page names typed by a user become file-safe slugs; file and folder names
become readable titles for navigation.
"""

import re


class TitleConverter:
    """Converts page names to file-safe slugs and file names to titles.

    Slug rules:
    - Spaces and colons -> hyphens (-)
    - Special characters (/, \\, ?, %, *, |, ", <, >, &, #) -> hyphens (-)
    - Multiple consecutive hyphens -> collapsed to a single hyphen
    - Leading/trailing hyphens and dots -> trimmed
    - Case is preserved exactly as typed

    Examples:
        - "Customer Feedback" -> "Customer-Feedback"
        - "Q&A Session" -> "Q-A-Session"
        - "_index.md" -> "Home Page" (as a title)
    """

    INDEX_NAMES = ('_index', 'index')
    HOME_TITLE = "Home Page"

    @staticmethod
    def name_to_slug(name: str) -> str:
        """Convert a page name to a file-safe slug (no extension).

        Raises:
            ValueError: If nothing usable remains after conversion

        Examples:
            >>> TitleConverter.name_to_slug("API Reference: Getting Started")
            'API-Reference-Getting-Started'
        """
        slug = re.sub(r'[\s:]+', '-', name.strip())
        slug = re.sub(r'[/\\?%*|"<>&#]', '-', slug)
        slug = re.sub(r'-{2,}', '-', slug)
        slug = slug.strip('-.')

        if not slug:
            raise ValueError(f"Page name '{name}' has no usable characters")
        return slug

    @classmethod
    def filename_to_title(cls, filename: str) -> str:
        """Convert a file or folder name to a display title.

        Examples:
            >>> TitleConverter.filename_to_title("getting-started.md")
            'Getting Started'
            >>> TitleConverter.filename_to_title("_index.md")
            'Home Page'
        """
        stem = re.sub(r'\.(md|markdown)$', '', filename)
        if stem in cls.INDEX_NAMES:
            return cls.HOME_TITLE

        title = re.sub(r'[-_]', ' ', stem)
        title = re.sub(r'\b\w', lambda match: match.group(0).upper(), title)
        return title.strip()
