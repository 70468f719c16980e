"""Flat namespace encoding for multi-file configuration.

Nested per-file documents are mapped to one flat namespace so a single form
can edit every file at once. Internally each entry is a FlatKey, a structured
(file path, key path) pair; the string form ``<filePath>/<dotted.key.path>``
is produced only at the edges (form data, display).

When string keys have to be turned back into structured pairs, the file path
is recovered first (known file paths, else the rightmost segment ending in a
config extension), then delimiter characters inside the key portion are
replaced by placeholder tokens so the dotted path can be split safely.

Known limitation: a key whose literal text already contains one of the
placeholder tokens is unescaped into the delimiter character. Keys holding a
literal "." only round-trip through the structured pairs, not the string form;
a document where such a key encodes the same as a nested path (TOML
``"a.b" = 1`` next to ``[a] b = 2``) is reported by colliding_keys and
rejected at load.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import FlatKeyError
from .formats import EXTENSION_FORMATS
from .models import FlatKey


logger = logging.getLogger(__name__)

KEY_SEPARATOR = "."
PATH_SEPARATOR = "/"

ESCAPE_TOKENS = {
    '/': '___SLASH___',
    '+': '___PLUS___',
    '"': '___QUOTE___',
    ':': '___COLON___',
    '@': '___AT___',
    '#': '___HASH___',
    '%': '___PERCENT___',
    '&': '___AMP___',
    '=': '___EQUALS___',
    '?': '___QUESTION___',
}


def escape_segment(text: str) -> str:
    """Replace delimiter characters in a key segment with placeholder tokens."""
    for char, token in ESCAPE_TOKENS.items():
        text = text.replace(char, token)
    return text


def unescape_segment(text: str) -> str:
    """Reverse escape_segment exactly."""
    for char, token in ESCAPE_TOKENS.items():
        text = text.replace(token, char)
    return text


def flatten_document(file_path: str, data: Mapping[str, Any]) -> Dict[FlatKey, Any]:
    """Flatten one parsed document.

    Lists and empty mappings are kept as opaque leaves so list-typed settings
    are never exploded into indexed keys.

    Example:
        >>> flatten_document("config.toml", {"params": {"text_color": "red"}})
        {FlatKey(file_path='config.toml', key_path=('params', 'text_color')): 'red'}
    """
    flat: Dict[FlatKey, Any] = {}

    def walk(node: Mapping[str, Any], prefix: Tuple[Any, ...]) -> None:
        for key, value in node.items():
            path = prefix + (key,)
            if isinstance(value, dict) and value:
                walk(value, path)
            else:
                flat[FlatKey(file_path, path)] = value

    walk(data, ())
    return flat


def flatten_documents(documents: Mapping[str, Mapping[str, Any]]) -> Dict[FlatKey, Any]:
    """Flatten ``{filePath: document}`` into one namespace, preserving order."""
    flat: Dict[FlatKey, Any] = {}
    for file_path, data in documents.items():
        flat.update(flatten_document(file_path, data))
    return flat


def encode_flat(flat: Mapping[FlatKey, Any]) -> Dict[str, Any]:
    """String-keyed view of a structured flat namespace."""
    return {key.encoded: value for key, value in flat.items()}


def colliding_keys(flat: Mapping[FlatKey, Any]) -> Dict[str, List[FlatKey]]:
    """Encoded strings shared by more than one structured key."""
    groups: Dict[str, List[FlatKey]] = {}
    for key in flat:
        groups.setdefault(key.encoded, []).append(key)
    return {encoded: keys for encoded, keys in groups.items() if len(keys) > 1}


def split_file_path(flat_key: str, known_files: Sequence[str] = ()) -> Tuple[str, str]:
    """Split a flat key into (file path, key portion).

    A known file path that prefixes the key wins (longest first). Otherwise the
    file path ends at the rightmost segment with a recognised config extension.

    Raises:
        FlatKeyError: If no file path can be recovered or the key portion is empty
    """
    for file_path in sorted(known_files, key=len, reverse=True):
        prefix = f"{file_path}{PATH_SEPARATOR}"
        if flat_key.startswith(prefix) and len(flat_key) > len(prefix):
            return file_path, flat_key[len(prefix):]

    segments = flat_key.split(PATH_SEPARATOR)
    for index in range(len(segments) - 2, -1, -1):
        if segments[index].lower().endswith(tuple(EXTENSION_FORMATS)):
            file_path = PATH_SEPARATOR.join(segments[:index + 1])
            key_part = PATH_SEPARATOR.join(segments[index + 1:])
            if not key_part:
                break
            return file_path, key_part

    raise FlatKeyError(flat_key, "no config file path found")


def escape_flat_key(flat_key: str, known_files: Sequence[str] = ()) -> str:
    """Escape delimiter characters in the key portion only."""
    file_path, key_part = split_file_path(flat_key, known_files)
    return f"{file_path}{PATH_SEPARATOR}{escape_segment(key_part)}"


def escape_flat_keys(flat: Mapping[str, Any], known_files: Sequence[str] = ()) -> Dict[str, Any]:
    return {escape_flat_key(key, known_files): value for key, value in flat.items()}


def parse_flat_key(escaped_key: str, known_files: Sequence[str] = ()) -> FlatKey:
    """Turn an escaped flat key into a structured pair, unescaping each segment.

    Raises:
        FlatKeyError: If the file path cannot be recovered or a segment is empty
    """
    file_path, key_part = split_file_path(escaped_key, known_files)
    segments = key_part.split(KEY_SEPARATOR)
    if any(segment == "" for segment in segments):
        raise FlatKeyError(escaped_key, "empty key segment")
    return FlatKey(file_path, tuple(unescape_segment(segment) for segment in segments))


def decode_flat(
    flat: Mapping[str, Any],
    known_files: Sequence[str] = (),
    known_keys: Optional[Mapping[str, FlatKey]] = None,
) -> Dict[FlatKey, Any]:
    """Structured view of a string-keyed namespace.

    Keys present in known_keys map back exactly; others are escaped and parsed.
    """
    known_keys = known_keys or {}
    decoded: Dict[FlatKey, Any] = {}
    for key, value in flat.items():
        structured = known_keys.get(key)
        if structured is None:
            structured = parse_flat_key(escape_flat_key(key, known_files), known_files)
        decoded[structured] = value
    return decoded


def _assign(tree: Dict[Any, Any], flat_key: FlatKey, value: Any) -> None:
    node = tree
    for part in flat_key.key_path[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            if part in node:
                logger.warning(
                    f"{flat_key.encoded}: replacing scalar at '{part}' with a table"
                )
            child = {}
            node[part] = child
        node = child

    leaf = flat_key.key_path[-1]
    existing = node.get(leaf)
    if isinstance(existing, dict) and existing:
        if isinstance(value, dict):
            for key, nested in value.items():
                existing.setdefault(key, nested)
        else:
            logger.warning(f"{flat_key.encoded}: keeping nested table over scalar value")
        return
    node[leaf] = value


def unflatten_by_file(
    flat: Mapping[FlatKey, Any],
    files: Iterable[str] = (),
) -> Dict[str, Dict[str, Any]]:
    """Regroup a structured namespace into nested per-file documents.

    Args:
        flat: Structured flat namespace
        files: File paths to include even if they end up empty

    Returns:
        ``{filePath: document}`` with files in first-seen order
    """
    documents: Dict[str, Dict[str, Any]] = {file_path: {} for file_path in files}
    for flat_key, value in flat.items():
        if not flat_key.key_path:
            raise FlatKeyError(flat_key.encoded, "empty key path")
        _assign(documents.setdefault(flat_key.file_path, {}), flat_key, value)
    return documents


def unflatten(flat: Mapping[str, Any], known_files: Sequence[str] = ()) -> Dict[str, Dict[str, Any]]:
    """Reverse the string encoding: escape, split, unescape, expand."""
    escaped = escape_flat_keys(flat, known_files)
    structured = {parse_flat_key(key, known_files): value for key, value in escaped.items()}
    return unflatten_by_file(structured, known_files)


def file_paths(flat: Mapping[FlatKey, Any]) -> List[str]:
    """Distinct file paths in first-seen order."""
    return list(dict.fromkeys(key.file_path for key in flat))
