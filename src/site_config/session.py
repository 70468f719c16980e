"""Edit-session state for site configuration.

A ConfigSession runs the read pipeline (discover, parse, flatten, categorize)
once, lets callers edit the in-memory form, and runs the reverse pipeline
(default, unflatten, serialize, commit) on an explicit save. All session state
lives on the instance; nothing is shared between sessions.
"""

import copy
import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

from src.repo_client.content_store import RemoteContentStore
from src.repo_client.errors import RepoError
from src.repo_client.models import PendingEdit
from .categorizer import MISC_CATEGORY, categorize, decategorize, sections_from_schema
from .defaults import inject_schema_defaults
from .discovery import CONFIG_DIR, ConfigDiscovery
from .errors import ConfigNotReadyError, FlatKeyError, ParseError, SaveError
from .flatten import (
    colliding_keys,
    decode_flat,
    encode_flat,
    flatten_document,
    flatten_documents,
    unflatten_by_file,
)
from .formats import DEFAULT_FORMAT, detect_format, parse_document
from .models import (
    ConfigDocument,
    ConfigLoadResult,
    ConfigSaveResult,
    FlatKey,
    RawConfigFile,
    StageTrace,
)
from .serializer import serialize_files
from .tracing import stage_span


logger = logging.getLogger(__name__)

READY_BUILD_STATUS = "BUILT"


def config_commit_message(paths: List[str]) -> str:
    return f"Changed config settings in {', '.join(paths)}"


class ConfigSession:
    """Session-scoped configuration editor.

    Example:
        >>> session = ConfigSession(store, schema)
        >>> session.load()
        >>> session.update("config.toml/params.text_color", "blue")
        >>> result = session.save()

    ``trace`` holds the stage spans of the most recent load or save.
    """

    def __init__(
        self,
        store: RemoteContentStore,
        schema: Optional[Mapping[str, Any]] = None,
        ui_schema: Optional[Mapping[str, Any]] = None,
    ):
        self.store = store
        self.schema = schema or {}
        self.ui_schema = ui_schema or {}
        self.trace: List[StageTrace] = []
        self.form_data: Dict[str, Dict[str, Any]] = {}
        self._original_form: Dict[str, Dict[str, Any]] = {}
        self._result: Optional[ConfigLoadResult] = None
        self._load_lock = threading.Lock()

    def _require_loaded(self) -> None:
        if self._result is None:
            raise RuntimeError("Configuration has not been loaded")

    @property
    def loaded(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> ConfigLoadResult:
        self._require_loaded()
        return self._result

    def load(self, force: bool = False) -> ConfigLoadResult:
        """Run the read pipeline once per session.

        Concurrent callers wait for the running load and share its result.
        Per-file read and parse errors are collected on the result.

        Args:
            force: Discard the cached result and pending edits and reload

        Raises:
            ConfigNotFoundError: If the repository holds no configuration at all
            TransportError: If the repository cannot be reached
        """
        with self._load_lock:
            if self._result is not None and not force:
                return self._result

            self.trace = []
            result = ConfigLoadResult()
            with stage_span('discover', self.trace) as span:
                result.raw_files, result.errors = ConfigDiscovery(self.store).discover()
                span['files'] = len(result.raw_files)

            with stage_span('parse', self.trace) as span:
                for path, raw in result.raw_files.items():
                    try:
                        data = parse_document(path, raw.content)
                    except ParseError as e:
                        logger.warning(f"Skipping {path}: {e.reason}")
                        result.errors.append(e)
                        continue
                    result.documents[path] = ConfigDocument(path, detect_format(path), data)
                span['errors'] = len(result.errors)

            with stage_span('flatten', self.trace) as span:
                structured: Dict[FlatKey, Any] = {}
                for path in list(result.documents):
                    flat = flatten_document(path, result.documents[path].data)
                    collisions = colliding_keys(flat)
                    if collisions:
                        error = ParseError(
                            path, f"keys collide when flattened: {', '.join(sorted(collisions))}"
                        )
                        logger.warning(f"Skipping {path}: {error.reason}")
                        result.errors.append(error)
                        del result.documents[path]
                        continue
                    structured.update(flat)
                result.flat_keys = {key.encoded: key for key in structured}
                result.flat_data = encode_flat(structured)
                span['keys'] = len(result.flat_data)

            with stage_span('categorize', self.trace):
                result.form_data = categorize(result.flat_data, self.schema)
                result.sections = sections_from_schema(self.schema, self.ui_schema)

            self._adopt(result)
            return result

    def adopt(self, result: ConfigLoadResult) -> None:
        """Start the session from a load performed elsewhere."""
        with self._load_lock:
            self._adopt(result)

    def _adopt(self, result: ConfigLoadResult) -> None:
        self._result = result
        self.form_data = copy.deepcopy(result.form_data)
        self._original_form = copy.deepcopy(result.form_data)

    @property
    def has_unsaved_changes(self) -> bool:
        return self.form_data != self._original_form

    def get(self, flat_key: str, default: Any = None) -> Any:
        for category_data in self.form_data.values():
            if flat_key in category_data:
                return category_data[flat_key]
        return default

    def update(self, flat_key: str, value: Any) -> None:
        """Set one field; keys outside every category are added to misc."""
        self._require_loaded()
        for category_data in self.form_data.values():
            if flat_key in category_data:
                category_data[flat_key] = value
                return

        for category_key, category_schema in (self.schema.get('properties') or {}).items():
            if flat_key in ((category_schema or {}).get('properties') or {}):
                self.form_data.setdefault(category_key, {})[flat_key] = value
                return
        self.form_data.setdefault(MISC_CATEGORY, {})[flat_key] = value

    def replace_form_data(self, form_data: Mapping[str, Mapping[str, Any]]) -> None:
        self._require_loaded()
        self.form_data = {key: dict(value) for key, value in form_data.items()}

    def discard_changes(self) -> None:
        self.form_data = copy.deepcopy(self._original_form)

    def save(self) -> ConfigSaveResult:
        """Run the write pipeline and commit every changed file at once.

        Files whose reconstructed data (or regenerated text) equals what was
        loaded are reported as unchanged and not written, so untouched files
        keep their original formatting. If nothing changed no commit is made.
        A failed commit marks every changed file as failed and leaves the
        form data untouched.

        Raises:
            SaveError: If a flat key or regenerated path is invalid, or a key
                targets a file that failed to load (nothing written)
        """
        result = self.result
        self.trace = []

        with stage_span('default', self.trace):
            form_with_defaults = inject_schema_defaults(self.form_data, self.schema)
            flat = decategorize(form_with_defaults)

        with stage_span('unflatten', self.trace) as span:
            known_files = list(result.documents)
            try:
                structured = decode_flat(flat, known_files, result.flat_keys)
            except FlatKeyError as e:
                raise SaveError(str(e), [e.key]) from e
            unloaded = set(result.raw_files) - set(known_files)
            blocked = [key.encoded for key in structured if key.file_path in unloaded]
            if blocked:
                raise SaveError("Cannot edit files that failed to load", blocked)
            documents = unflatten_by_file(structured, known_files)
            span['files'] = len(documents)

        with stage_span('serialize', self.trace):
            rendered, outcomes = serialize_files(documents)
            changed: Dict[str, str] = {}
            for path, text in rendered.items():
                loaded = result.documents.get(path)
                raw = result.raw_files.get(path)
                if loaded is not None and loaded.data == documents[path]:
                    outcomes[path].changed = False
                elif raw is not None and raw.content == text:
                    outcomes[path].changed = False
                else:
                    changed[path] = text

        save_result = ConfigSaveResult(outcomes=list(outcomes.values()))
        if not changed:
            logger.info("Configuration unchanged; nothing to commit")
            return save_result

        message = config_commit_message(list(changed))
        try:
            with stage_span('commit', self.trace, files=len(changed)):
                save_result.commit = self.store.write_many(
                    [PendingEdit(path, text) for path, text in changed.items()],
                    message,
                )
        except RepoError as e:
            for path in changed:
                outcome = outcomes[path]
                outcome.success = False
                outcome.error = str(e)
            logger.error(f"Config save failed; edits kept in session: {e}")
            return save_result

        for path, text in changed.items():
            result.raw_files[path] = RawConfigFile(path, text, path.startswith(f"{CONFIG_DIR}/"))
        for path, data in documents.items():
            result.documents[path] = ConfigDocument(path, detect_format(path) or DEFAULT_FORMAT, data)
        structured = flatten_documents({path: doc.data for path, doc in result.documents.items()})
        result.flat_keys = {key.encoded: key for key in structured}
        result.flat_data = encode_flat(structured)

        self.form_data = form_with_defaults
        self._original_form = copy.deepcopy(form_with_defaults)
        result.form_data = copy.deepcopy(form_with_defaults)
        logger.info(f"Saved {len(changed)} config file(s) in commit {save_result.commit.sha[:8]}")
        return save_result


def ensure_config_ready(record: Any) -> None:
    """Raise unless the document's site has finished building.

    Raises:
        ConfigNotReadyError: If the record's build status is not BUILT
    """
    status = getattr(record, 'build_status', None)
    if status != READY_BUILD_STATUS:
        raise ConfigNotReadyError(
            getattr(record, "document_id", "?"),
            getattr(status, "value", status),
        )


def load_config_model(
    store: RemoteContentStore,
    record: Any,
    schema: Optional[Mapping[str, Any]] = None,
    ui_schema: Optional[Mapping[str, Any]] = None,
) -> ConfigSession:
    """Open an edit session for a document whose site has built.

    Returns:
        A loaded ConfigSession (``session.result`` holds form data and raw files)

    Raises:
        ConfigNotReadyError: If the document is not built yet
    """
    ensure_config_ready(record)
    session = ConfigSession(store, schema, ui_schema)
    session.load()
    return session


def save_config_model(
    store: RemoteContentStore,
    form_data: Mapping[str, Mapping[str, Any]],
    schema: Optional[Mapping[str, Any]] = None,
    load_result: Optional[ConfigLoadResult] = None,
) -> ConfigSaveResult:
    """Save categorised form data without keeping a session around.

    The current configuration is loaded first unless load_result is given.
    """
    session = ConfigSession(store, schema)
    if load_result is not None:
        session.adopt(load_result)
    else:
        session.load()
    session.replace_form_data(form_data)
    return session.save()
