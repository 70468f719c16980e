"""Format codecs for configuration files.

Maps file extensions to parse and dump functions for TOML, YAML and JSON.
"""

import json
import logging
import tomllib
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

import tomli_w
import yaml

from .errors import ParseError, SerializeError


logger = logging.getLogger(__name__)

MAX_NESTING_DEPTH = 32

EXTENSION_FORMATS = {
    '.toml': 'toml',
    '.yaml': 'yaml',
    '.yml': 'yaml',
    '.json': 'json',
}

DEFAULT_FORMAT = 'toml'


def detect_format(file_path: str) -> Optional[str]:
    """Return the format tag for a path, or None if the extension is unknown."""
    return EXTENSION_FORMATS.get(PurePosixPath(file_path).suffix.lower())


def is_config_file(file_path: str) -> bool:
    return detect_format(file_path) is not None


def nesting_depth(value: Any) -> int:
    """Depth of nested mappings and lists (a scalar has depth 0)."""
    if isinstance(value, dict):
        return 1 + max((nesting_depth(v) for v in value.values()), default=0)
    if isinstance(value, list):
        return 1 + max((nesting_depth(v) for v in value), default=0)
    return 0


def parse_document(file_path: str, content: str) -> Dict[str, Any]:
    """Parse configuration text according to the file's extension.

    Args:
        file_path: Path used to select the format and label errors
        content: File text

    Returns:
        Parsed mapping (an empty YAML document yields {})

    Raises:
        ParseError: If the text is malformed, not a mapping, too deeply
            nested, or the extension is unsupported
    """
    fmt = detect_format(file_path)
    if fmt is None:
        raise ParseError(file_path, "unsupported file extension")

    try:
        if fmt == 'toml':
            data = tomllib.loads(content)
        elif fmt == 'yaml':
            data = yaml.safe_load(content)
            if data is None:
                data = {}
        else:
            data = json.loads(content)
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ParseError(file_path, str(e)) from e

    if not isinstance(data, dict):
        raise ParseError(
            file_path, f"top-level value must be a mapping, got {type(data).__name__}"
        )

    if nesting_depth(data) > MAX_NESTING_DEPTH:
        raise ParseError(
            file_path, f"nesting exceeds maximum depth of {MAX_NESTING_DEPTH}"
        )

    logger.debug(f"Parsed {file_path} as {fmt} ({len(data)} top-level keys)")
    return data


def dump_document(file_path: str, data: Dict[str, Any]) -> str:
    """Render a mapping in the format chosen by the file's extension.

    Unknown extensions are rendered as TOML.

    Raises:
        SerializeError: If the native encoder rejects the data
    """
    fmt = detect_format(file_path) or DEFAULT_FORMAT
    try:
        if fmt == 'toml':
            return tomli_w.dumps(data)
        if fmt == 'yaml':
            return yaml.safe_dump(
                data,
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False,
            )
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise SerializeError(file_path, str(e)) from e


def dump_fallback(data: Dict[str, Any]) -> str:
    """Generic structured dump used when the native encoder fails."""
    return json.dumps(data, indent=2, default=str) + "\n"
