"""Main CLI entry point for the sitesync command.

This module provides the Typer application for editing a static site held in
a remote repository: browsing and restructuring pages, uploading assets, and
reading or changing the site's configuration.
"""

import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import typer
import yaml

from src.cli.config import DocumentStore
from src.cli.errors import RecordNotFoundError
from src.cli.models import BuildStatus, DocumentRecord, ExitCode, PublishStatus
from src.cli.output import OutputHandler
from src.content_tree.rename_engine import RenameEngine
from src.content_tree.tree_builder import TreeBuilder
from src.repo_client.content_store import RemoteContentStore
from src.repo_client.errors import (
    APIUnreachableError,
    ConflictError,
    InvalidCredentialsError,
    SyncError,
)
from src.repo_client.models import RepositoryRef
from src.site_config.session import ConfigSession, load_config_model

VERSION = "0.1.0"

app = typer.Typer(
    name="sitesync",
    help="Edit a static site kept in a remote git repository.",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)
config_app = typer.Typer(
    help="Read and change the site configuration.",
    no_args_is_help=True,
)
page_app = typer.Typer(
    help="Read and change page settings (frontmatter).",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")
app.add_typer(page_app, name="page")

logger = logging.getLogger(__name__)

VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}


@dataclass
class CLIState:
    """Options shared by every command."""
    record_path: str
    output: OutputHandler


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Attach console (and optionally file) handlers to the application logger.

    Only loggers under the "src" package are touched; requests and urllib3 keep
    their own configuration. Verbosity 0, 1 and 2+ map to WARNING, INFO, DEBUG.
    """
    level = VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    date_format = "%Y-%m-%d %H:%M:%S"
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)
    )
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"sitesync_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def exit_code_for(error: Exception) -> ExitCode:
    """Map an exception to the process exit code."""
    if isinstance(error, InvalidCredentialsError):
        return ExitCode.AUTH_ERROR
    if isinstance(error, APIUnreachableError):
        return ExitCode.NETWORK_ERROR
    if isinstance(error, ConflictError):
        return ExitCode.CONFLICTS
    return ExitCode.GENERAL_ERROR


@contextmanager
def _handle_errors(output: OutputHandler, action: str) -> Iterator[None]:
    try:
        yield
    except (SyncError, ValueError) as e:
        logger.error(f"{action} failed: {e}")
        output.error(f"{action} failed: {e}")
        raise typer.Exit(exit_code_for(e))


def _state(ctx: typer.Context) -> CLIState:
    return ctx.obj


def _require_record(state: CLIState) -> DocumentRecord:
    record = DocumentStore.load(state.record_path)
    if record is None:
        raise RecordNotFoundError(state.record_path)
    return record


def _open_store(record: DocumentRecord) -> RemoteContentStore:
    return RemoteContentStore.from_environment(RepositoryRef.parse(record.repository))


def _mark_publishing(state: CLIState, record: DocumentRecord) -> None:
    record.publish_status = PublishStatus.PUBLISHING
    DocumentStore.save(state.record_path, record)


def _load_schema(path: Optional[Path]) -> Dict[str, Any]:
    """Read a JSON or YAML schema file (JSON parses as YAML)."""
    if path is None:
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Schema file {path} is not valid JSON or YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Schema file {path} must contain a mapping")
    return data


def _parse_value(raw_value: str, as_string: bool = False) -> Any:
    """Typed value from a command-line string.

    Only JSON literals are decoded (numbers, true/false/null, arrays, objects,
    quoted strings), and a float only when it prints back unchanged, so "yes"
    and "1.10" stay text. With as_string nothing is decoded.
    """
    if as_string or not raw_value:
        return raw_value
    try:
        value = json.loads(raw_value)
    except ValueError:
        return raw_value
    if isinstance(value, float) and json.dumps(value) != raw_value.strip():
        return raw_value
    return value


def _parse_assignments(assignments: List[str], as_string: bool = False) -> List[Tuple[str, Any]]:
    updates = []
    for assignment in assignments:
        key, sep, raw_value = assignment.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got '{assignment}'")
        updates.append((key, _parse_value(raw_value, as_string)))
    return updates


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sitesync version {VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    record_path: str = typer.Option(
        DocumentStore.default_path(),
        "--record",
        help="Path of the document record file",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Edit a static site kept in a remote git repository.

    \b
    QUICK START:
      sitesync init acme/site --document-id my-site
      sitesync tree
      sitesync new-page blog "My First Post"
      sitesync config set config.toml/params.text_color=blue
    """
    _configure_logging(verbosity, logdir)
    ctx.obj = CLIState(
        record_path=record_path,
        output=OutputHandler(verbosity=verbosity, no_color=no_color),
    )


@app.command()
def init(
    ctx: typer.Context,
    repository: str = typer.Argument(..., help="owner/name[@branch] or clone URL"),
    document_id: Optional[str] = typer.Option(None, "--document-id", help="Document identifier (defaults to the repository name)"),
    template: Optional[str] = typer.Option(None, "--template", help="Template the site was created from"),
    built: bool = typer.Option(False, "--built", help="Mark the site as already built"),
) -> None:
    """Create the document record for a site repository."""
    state = _state(ctx)
    with _handle_errors(state.output, "Initialization"):
        repo = RepositoryRef.parse(repository)
        record = DocumentRecord(
            document_id=document_id or repo.name,
            repository=f"{repo.full_name}@{repo.branch}",
            template=template,
            build_status=BuildStatus.BUILT if built else BuildStatus.BUILDING,
        )
        DocumentStore.save(state.record_path, record)
    state.output.success(f"Document '{record.document_id}' initialized for {repo.full_name}")
    state.output.info(f"  Record file: {state.record_path}")


@app.command()
def status(ctx: typer.Context) -> None:
    """Show the document record."""
    state = _state(ctx)
    with _handle_errors(state.output, "Status"):
        record = _require_record(state)
    state.output.print(f"Document:   {record.document_id}")
    state.output.print(f"Repository: {record.repository}")
    state.output.print(f"Template:   {record.template or '-'}")
    state.output.print(f"Build:      {record.build_status.value}")
    state.output.print(f"Publish:    {record.publish_status.value}")


@app.command("set-status")
def set_status(
    ctx: typer.Context,
    build: Optional[BuildStatus] = typer.Option(None, "--build", help="New build status"),
    publish: Optional[PublishStatus] = typer.Option(None, "--publish", help="New publish status"),
) -> None:
    """Record build or publish status reported by the site host."""
    state = _state(ctx)
    with _handle_errors(state.output, "Status update"):
        record = _require_record(state)
        if build is not None:
            record.build_status = build
        if publish is not None:
            record.publish_status = publish
        DocumentStore.save(state.record_path, record)
    state.output.success(
        f"Build: {record.build_status.value}, publish: {record.publish_status.value}"
    )


@app.command()
def tree(
    ctx: typer.Context,
    root: str = typer.Option("content", "--root", help="Scope root to list"),
    assets: bool = typer.Option(False, "--assets", help="List static/ and assets/ instead of pages"),
) -> None:
    """Show the page tree (or asset tree) of the site."""
    state = _state(ctx)
    with _handle_errors(state.output, "Listing"):
        record = _require_record(state)
        builder = TreeBuilder(_open_store(record))
        with state.output.spinner("Fetching tree..."):
            if assets:
                nodes = builder.list_assets()
            else:
                nodes = builder.build(root)
    if assets:
        state.output.print_file_tree(nodes, "assets")
    else:
        state.output.print_page_tree(builder.to_page_tree(nodes), root)


@app.command()
def rename(
    ctx: typer.Context,
    old_path: str = typer.Argument(..., help="Current file or folder path"),
    new_path: str = typer.Argument(..., help="New path"),
    item_type: Optional[str] = typer.Option(None, "--type", help="'file' or 'folder' (detected if omitted)"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing destination file"),
) -> None:
    """Rename a page, file or folder in one commit."""
    state = _state(ctx)
    with _handle_errors(state.output, "Rename"):
        record = _require_record(state)
        engine = RenameEngine(_open_store(record))
        result = engine.rename_path(old_path, new_path, item_type=item_type, overwrite=overwrite)
        _mark_publishing(state, record)
    state.output.success(f"Renamed {old_path} to {new_path}")
    state.output.print_operation(result)


@app.command()
def delete(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File or folder to delete"),
) -> None:
    """Delete a page, file or folder in one commit."""
    state = _state(ctx)
    with _handle_errors(state.output, "Delete"):
        record = _require_record(state)
        result = RenameEngine(_open_store(record)).delete_path(path)
        _mark_publishing(state, record)
    state.output.success(f"Deleted {path}")
    state.output.print_operation(result)


@app.command("new-page")
def new_page(
    ctx: typer.Context,
    parent: str = typer.Argument(..., help="Parent folder (under content/)"),
    title: str = typer.Argument(..., help="Page title"),
    section: bool = typer.Option(False, "--section", help="Create a section (folder with _index.md)"),
    allow_existing: bool = typer.Option(False, "--allow-existing", help="Overwrite an existing page"),
) -> None:
    """Create a page or section with title and date frontmatter."""
    state = _state(ctx)
    with _handle_errors(state.output, "Page creation"):
        record = _require_record(state)
        result = RenameEngine(_open_store(record)).create_page(
            parent, title, as_section=section, fail_if_exists=not allow_existing
        )
        _mark_publishing(state, record)
    state.output.success(f"Created {result.paths[0]}")


@app.command()
def convert(
    ctx: typer.Context,
    leaf_path: str = typer.Argument(..., help="Leaf page to turn into a bundle"),
    child_title: str = typer.Argument(..., help="Title of the first child page"),
) -> None:
    """Turn a leaf page into a bundle and add a child page."""
    state = _state(ctx)
    with _handle_errors(state.output, "Conversion"):
        record = _require_record(state)
        result = RenameEngine(_open_store(record)).convert_to_bundle(leaf_path, child_title)
        _mark_publishing(state, record)
    state.output.success(f"Converted {leaf_path} to a bundle")
    state.output.print_operation(result)


@app.command()
def upload(
    ctx: typer.Context,
    local_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to upload"),
    destination: str = typer.Argument(..., help="Repository path, e.g. static/img/logo.png"),
) -> None:
    """Upload a local file (e.g. an image) to the site."""
    state = _state(ctx)
    with _handle_errors(state.output, "Upload"):
        record = _require_record(state)
        result = RenameEngine(_open_store(record)).upload_file(destination, local_file.read_bytes())
        _mark_publishing(state, record)
    state.output.success(f"Uploaded {result.paths[0]}")


@page_app.command("show")
def page_show(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Page file or bundle folder (under content/)"),
    body: bool = typer.Option(False, "--body", help="Print the markdown body too"),
) -> None:
    """Show a page's frontmatter settings."""
    state = _state(ctx)
    with _handle_errors(state.output, "Loading page"):
        record = _require_record(state)
        metadata, text = RenameEngine(_open_store(record)).read_page(path)
    state.output.print_page(path, metadata, text, show_body=body)


@page_app.command("set")
def page_set(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Page file or bundle folder (under content/)"),
    assignments: Optional[List[str]] = typer.Argument(None, help="KEY=VALUE pairs; JSON literals are decoded"),
    unset: Optional[List[str]] = typer.Option(None, "--unset", help="Frontmatter key to remove (repeatable)"),
    as_string: bool = typer.Option(False, "--string", help="Store every value as text"),
) -> None:
    """Change a page's frontmatter settings; the body is left untouched."""
    state = _state(ctx)
    with _handle_errors(state.output, "Saving page settings"):
        updates = _parse_assignments(assignments or [], as_string)
        if not updates and not unset:
            raise ValueError("Nothing to change: give KEY=VALUE pairs or --unset KEY")

        record = _require_record(state)
        engine = RenameEngine(_open_store(record))
        metadata, _ = engine.read_page(path)
        for key in unset or []:
            metadata.pop(key, None)
        metadata.update(updates)
        result = engine.update_page_settings(path, metadata)
        if result.commits:
            _mark_publishing(state, record)

    if result.commits:
        state.output.success(f"Updated settings of {result.paths[0]}")
    else:
        state.output.success(f"Settings of {result.paths[0]} unchanged")


def _open_session(
    state: CLIState,
    schema_path: Optional[Path],
    ui_schema_path: Optional[Path],
) -> ConfigSession:
    record = _require_record(state)
    schema = _load_schema(schema_path)
    ui_schema = _load_schema(ui_schema_path)
    with state.output.spinner("Loading configuration..."):
        session = load_config_model(_open_store(record), record, schema, ui_schema)
    for error in session.result.errors:
        state.output.warning(str(error))
    return session


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    schema_path: Optional[Path] = typer.Option(None, "--schema", exists=True, help="JSON Schema (JSON or YAML)"),
    ui_schema_path: Optional[Path] = typer.Option(None, "--ui-schema", exists=True, help="UI schema (JSON or YAML)"),
) -> None:
    """Show the configuration as categorised flat keys."""
    state = _state(ctx)
    with _handle_errors(state.output, "Loading configuration"):
        session = _open_session(state, schema_path, ui_schema_path)
    state.output.print_config(session.form_data, session.result.sections)


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    assignments: List[str] = typer.Argument(..., help="KEY=VALUE pairs; JSON literals are decoded"),
    as_string: bool = typer.Option(False, "--string", help="Store every value as text"),
    schema_path: Optional[Path] = typer.Option(None, "--schema", exists=True, help="JSON Schema (JSON or YAML)"),
) -> None:
    """Change configuration values and save them in one commit."""
    state = _state(ctx)
    with _handle_errors(state.output, "Saving configuration"):
        updates = _parse_assignments(assignments, as_string)
        session = _open_session(state, schema_path, None)
        for key, value in updates:
            session.update(key, value)
        result = session.save()

    state.output.print_save_summary(result)
    if not result.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    if result.commit is not None:
        record = _require_record(state)
        _mark_publishing(state, record)


def main() -> None:
    """Main entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
