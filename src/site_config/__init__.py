"""Site configuration pipeline.

Discovers TOML/YAML/JSON configuration in a site repository, presents it as
one categorised flat namespace for form editing, and writes edits back to the
original files in a single commit.
"""

from .errors import (
    SiteConfigError,
    ConfigFileError,
    ParseError,
    SerializeError,
    FlatKeyError,
    ConfigNotFoundError,
    ConfigNotReadyError,
    SaveError,
)
from .models import (
    FlatKey,
    RawConfigFile,
    ConfigDocument,
    SchemaCategory,
    StageTrace,
    ConfigLoadResult,
    FileSaveOutcome,
    ConfigSaveResult,
)
from .formats import parse_document, dump_document, detect_format
from .discovery import ConfigDiscovery, ROOT_CONFIG_NAMES
from .flatten import (
    flatten_documents,
    encode_flat,
    escape_flat_keys,
    parse_flat_key,
    unflatten,
    unflatten_by_file,
)
from .categorizer import categorize, decategorize, sections_from_schema
from .defaults import inject_schema_defaults
from .serializer import serialize_files, validate_file_paths
from .tracing import stage_span
from .session import ConfigSession, load_config_model, save_config_model

__all__ = [
    "SiteConfigError",
    "ConfigFileError",
    "ParseError",
    "SerializeError",
    "FlatKeyError",
    "ConfigNotFoundError",
    "ConfigNotReadyError",
    "SaveError",
    "FlatKey",
    "RawConfigFile",
    "ConfigDocument",
    "SchemaCategory",
    "StageTrace",
    "ConfigLoadResult",
    "FileSaveOutcome",
    "ConfigSaveResult",
    "parse_document",
    "dump_document",
    "detect_format",
    "ConfigDiscovery",
    "ROOT_CONFIG_NAMES",
    "flatten_documents",
    "encode_flat",
    "escape_flat_keys",
    "parse_flat_key",
    "unflatten",
    "unflatten_by_file",
    "categorize",
    "decategorize",
    "sections_from_schema",
    "inject_schema_defaults",
    "serialize_files",
    "validate_file_paths",
    "stage_span",
    "ConfigSession",
    "load_config_model",
    "save_config_model",
]
