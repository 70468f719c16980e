"""Data models for the site configuration pipeline.

This module defines all data models used by the configuration pipeline.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from src.repo_client.models import CommitResult
from .errors import ConfigFileError


class FlatKey(NamedTuple):
    """A flat namespace key carried as a structured (file, key path) pair.

    Attributes:
        file_path: Config file the value lives in (e.g. "config/_default/params.toml")
        key_path: Nested key names inside that file (e.g. ("params", "text_color"))
    """
    file_path: str
    key_path: Tuple[Any, ...]

    @property
    def encoded(self) -> str:
        """Delimited string form: ``<filePath>/<dotted.key.path>``."""
        return f"{self.file_path}/{'.'.join(str(part) for part in self.key_path)}"


@dataclass
class RawConfigFile:
    """A discovered configuration file before parsing.

    Attributes:
        path: Repository-root relative path
        content: Decoded text content
        from_directory: True if found under the config directory
    """
    path: str
    content: str
    from_directory: bool = False


@dataclass
class ConfigDocument:
    """A parsed configuration file.

    Attributes:
        path: Source path
        format: Format tag ("toml", "yaml" or "json")
        data: Parsed object tree
    """
    path: str
    format: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SchemaCategory:
    """A top-level schema section used for grouping and navigation.

    Attributes:
        key: Property name in the schema
        title: Display title (falls back to key)
        fields: Flat keys declared by the category, in display order
    """
    key: str
    title: str
    fields: List[str] = field(default_factory=list)


@dataclass
class StageTrace:
    """Timing and outcome of one pipeline stage."""
    stage: str
    duration_ms: float
    status: str = "ok"
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ConfigLoadResult:
    """Everything the read pipeline produced for one edit session.

    Attributes:
        form_data: Categorised form model (category -> {flat key -> value})
        raw_files: Discovered files keyed by path
        documents: Successfully parsed documents keyed by path
        flat_data: Flat namespace before categorisation
        flat_keys: Structured pair for every loaded flat key
        errors: Per-file discovery/parse errors (non-fatal)
        sections: Navigable schema sections
    """
    form_data: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    raw_files: Dict[str, RawConfigFile] = field(default_factory=dict)
    documents: Dict[str, ConfigDocument] = field(default_factory=dict)
    flat_data: Dict[str, Any] = field(default_factory=dict)
    flat_keys: Dict[str, FlatKey] = field(default_factory=dict)
    errors: List[ConfigFileError] = field(default_factory=list)
    sections: List[SchemaCategory] = field(default_factory=list)


@dataclass
class FileSaveOutcome:
    """Result of saving one regenerated configuration file.

    Attributes:
        path: File path
        success: True if the file is committed (or unchanged)
        changed: True if the regenerated content differs from what was loaded
        used_fallback: True if the generic structured dump replaced the native format
        error: Error message when success is False or a fallback was used
    """
    path: str
    success: bool
    changed: bool = True
    used_fallback: bool = False
    error: Optional[str] = None


@dataclass
class ConfigSaveResult:
    """Outcome of one save: per-file results plus the commit, if any."""
    outcomes: List[FileSaveOutcome] = field(default_factory=list)
    commit: Optional[CommitResult] = None

    @property
    def success(self) -> bool:
        return all(outcome.success for outcome in self.outcomes)

    @property
    def failed_paths(self) -> List[str]:
        return [outcome.path for outcome in self.outcomes if not outcome.success]
