"""Per-file serialization of reconstructed configuration documents."""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .errors import SaveError, SerializeError
from .formats import dump_document, dump_fallback
from .models import FileSaveOutcome


logger = logging.getLogger(__name__)


def validate_file_paths(paths: Iterable[str]) -> None:
    """Reject paths that cannot be committed.

    Raises:
        SaveError: Listing every empty, malformed or duplicated path
    """
    seen = set()
    invalid: List[str] = []
    for path in paths:
        if (
            not path
            or not path.strip()
            or '//' in path
            or path.startswith('/')
            or path.endswith('/')
            or path in seen
        ):
            invalid.append(path)
        seen.add(path)

    if invalid:
        raise SaveError("Invalid config file path(s)", [repr(path) for path in invalid])


def serialize_files(
    documents: Mapping[str, Mapping[str, Any]],
) -> Tuple[Dict[str, str], Dict[str, FileSaveOutcome]]:
    """Render each document in its original format.

    A file whose native encoder fails is rendered with the generic structured
    dump instead; its outcome records the fallback and the encoder error.

    Returns:
        Tuple of (rendered text by path, outcome by path)
    """
    validate_file_paths(documents.keys())

    rendered: Dict[str, str] = {}
    outcomes: Dict[str, FileSaveOutcome] = {}
    for path, data in documents.items():
        try:
            rendered[path] = dump_document(path, dict(data))
            outcomes[path] = FileSaveOutcome(path=path, success=True)
        except SerializeError as e:
            logger.warning(f"{e}; writing {path} as a generic structured dump")
            rendered[path] = dump_fallback(dict(data))
            outcomes[path] = FileSaveOutcome(
                path=path,
                success=True,
                used_fallback=True,
                error=str(e),
            )
    return rendered, outcomes
