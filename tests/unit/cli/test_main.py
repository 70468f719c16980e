"""Unit tests for main CLI entry point (main.py).

Tests the Typer CLI application using CliRunner against an in-memory host.
"""

import json
import logging
import tomllib
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from src.cli.config import DocumentStore
from src.cli.main import _configure_logging, _parse_value, app, exit_code_for
from src.cli.models import BuildStatus, DocumentRecord, ExitCode, PublishStatus
from src.repo_client.content_store import RemoteContentStore
from src.repo_client.errors import (
    APIAccessError,
    APIUnreachableError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
)
from tests.fixtures.fake_host import FakeHost
from tests.fixtures.sample_sites import CONTENT_SITE_FILES, SAMPLE_CONFIG_TOML, SAMPLE_SCHEMA


runner = CliRunner()


@pytest.fixture
def host():
    files = dict(CONTENT_SITE_FILES)
    files["config.toml"] = SAMPLE_CONFIG_TOML
    return FakeHost(files)


@pytest.fixture
def record_path(tmp_path):
    path = str(tmp_path / ".sitesync" / "document.yaml")
    DocumentStore.save(path, DocumentRecord(
        document_id="site-1",
        repository="acme/site@main",
        build_status=BuildStatus.BUILT,
    ))
    return path


@pytest.fixture(autouse=True)
def remote(host, monkeypatch):
    """Every command talks to the in-memory host."""
    monkeypatch.setattr("src.cli.main._open_store", lambda record: RemoteContentStore(host))


def invoke(record_path, *args):
    return runner.invoke(app, ["--record", record_path, *args], env={"COLUMNS": "250"})


class TestConfigureLogging:
    """Test cases for _configure_logging function."""

    @pytest.mark.parametrize("verbosity,level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_sets_level(self, verbosity, level):
        with patch('logging.getLogger') as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            _configure_logging(verbosity)

            mock_get_logger.assert_called_with("src")
            mock_logger.setLevel.assert_called_with(level)

    def test_logdir_creates_log_file(self, tmp_path):
        logdir = tmp_path / "logs"

        _configure_logging(1, str(logdir))
        logging.getLogger("src.cli.main").info("hello")

        log_files = list(logdir.glob("sitesync_*.log"))
        assert len(log_files) == 1


class TestHelpers:
    """Test cases for exit code mapping and value parsing."""

    @pytest.mark.parametrize("error,code", [
        (InvalidCredentialsError("https://api.example"), ExitCode.AUTH_ERROR),
        (APIUnreachableError("https://api.example"), ExitCode.NETWORK_ERROR),
        (ConflictError("moved"), ExitCode.CONFLICTS),
        (APIAccessError(), ExitCode.GENERAL_ERROR),
        (NotFoundError("x"), ExitCode.GENERAL_ERROR),
        (ValueError("bad"), ExitCode.GENERAL_ERROR),
    ])
    def test_exit_code_for(self, error, code):
        assert exit_code_for(error) == code

    @pytest.mark.parametrize("raw,expected", [
        ("blue", "blue"),
        ("3", 3),
        ("1.5", 1.5),
        ("true", True),
        ("null", None),
        ('["a", "b"]', ["a", "b"]),
        ('"42"', "42"),
        ("", ""),
        ("[unclosed", "[unclosed"),
        ("yes", "yes"),
        ("on", "on"),
        ("1.10", "1.10"),
    ])
    def test_parse_value(self, raw, expected):
        assert _parse_value(raw) == expected

    def test_parse_value_as_string(self):
        assert _parse_value("true", as_string=True) == "true"


class TestRecordCommands:
    """Test cases for init, status and set-status."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "sitesync version" in result.output

    def test_init_writes_record(self, tmp_path):
        path = str(tmp_path / "record.yaml")

        result = invoke(path, "init", "https://github.com/acme/site.git", "--template", "ananke", "--built")

        assert result.exit_code == 0
        record = DocumentStore.load(path)
        assert record.document_id == "site"
        assert record.repository == "acme/site@main"
        assert record.template == "ananke"
        assert record.build_status == BuildStatus.BUILT

    def test_init_invalid_repository(self, tmp_path):
        result = invoke(str(tmp_path / "record.yaml"), "init", "not a repo")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Invalid repository reference" in result.output

    def test_status_without_record(self, tmp_path):
        result = invoke(str(tmp_path / "missing.yaml"), "status")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "sitesync init" in result.output

    def test_status_shows_record(self, record_path):
        result = invoke(record_path, "status")

        assert result.exit_code == 0
        assert "site-1" in result.output
        assert "BUILT" in result.output

    def test_set_status(self, record_path):
        result = invoke(record_path, "set-status", "--build", "ERROR", "--publish", "PUBLISHED")

        assert result.exit_code == 0
        record = DocumentStore.load(record_path)
        assert record.build_status == BuildStatus.ERROR
        assert record.publish_status == PublishStatus.PUBLISHED


class TestPageCommands:
    """Test cases for tree, rename, delete, new-page, convert and upload."""

    def test_tree_lists_pages(self, record_path):
        result = invoke(record_path, "tree")

        assert result.exit_code == 0
        assert "Home Page" in result.output
        assert "First Post" in result.output

    def test_tree_lists_assets(self, record_path):
        result = invoke(record_path, "tree", "--assets")

        assert result.exit_code == 0
        assert "logo.png" in result.output
        assert "site.css" in result.output

    def test_rename_marks_publishing(self, record_path, host):
        result = invoke(record_path, "rename", "content/blog", "content/articles")

        assert result.exit_code == 0
        assert "content/articles/first-post.md" in host.files()
        assert not [path for path in host.files() if path.startswith("content/blog/")]
        assert DocumentStore.load(record_path).publish_status == PublishStatus.PUBLISHING

    def test_rename_missing_source(self, record_path):
        result = invoke(record_path, "rename", "missing.md", "other.md")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert DocumentStore.load(record_path).publish_status == PublishStatus.UNPUBLISHED

    def test_delete(self, record_path, host):
        result = invoke(record_path, "delete", "about.md")

        assert result.exit_code == 0
        assert "content/about.md" not in host.files()

    def test_new_page(self, record_path, host):
        result = invoke(record_path, "new-page", "blog", "My Post")

        assert result.exit_code == 0
        assert host.text("content/blog/My-Post.md").startswith("---\ntitle: My Post\n")

    def test_new_section(self, record_path, host):
        result = invoke(record_path, "new-page", "", "Docs", "--section")

        assert result.exit_code == 0
        assert "content/Docs/_index.md" in host.files()

    def test_convert(self, record_path, host):
        result = invoke(record_path, "convert", "content/about.md", "team")

        assert result.exit_code == 0
        assert "content/about/team.md" in host.files()
        assert "content/about.md" not in host.files()

    def test_convert_conflict_exit_code(self, record_path, host):
        """A leaf edited by someone else mid-conversion exits with CONFLICTS."""
        host.before_update_ref(lambda: host.seed({"content/about.md": "changed"}))

        result = invoke(record_path, "convert", "content/about.md", "team")

        assert result.exit_code == ExitCode.CONFLICTS
        assert host.text("content/about.md") == "changed"

    def test_upload(self, record_path, host, tmp_path):
        local = tmp_path / "photo.jpg"
        local.write_bytes(b"\xff\xd8jpeg")

        result = invoke(record_path, "upload", str(local), "static/img/photo.jpg")

        assert result.exit_code == 0
        assert host.files()["static/img/photo.jpg"] == b"\xff\xd8jpeg"

    def test_auth_failure_exit_code(self, record_path, monkeypatch):
        def refuse(record):
            raise InvalidCredentialsError("https://api.github.com", "bad token")

        monkeypatch.setattr("src.cli.main._open_store", refuse)

        result = invoke(record_path, "tree")

        assert result.exit_code == ExitCode.AUTH_ERROR


class TestConfigCommands:
    """Test cases for config show and config set."""

    @pytest.fixture
    def schema_file(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text(json.dumps(SAMPLE_SCHEMA), encoding="utf-8")
        return path

    def test_show_groups_by_category(self, record_path, schema_file):
        result = invoke(record_path, "config", "show", "--schema", str(schema_file))

        assert result.exit_code == 0
        assert "Appearance" in result.output
        assert "config.toml/params.text_color" in result.output

    def test_show_requires_built_site(self, record_path):
        invoke(record_path, "set-status", "--build", "BUILDING")

        result = invoke(record_path, "config", "show")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "not available" in result.output

    def test_invalid_schema_file(self, record_path, tmp_path):
        bad = tmp_path / "schema.yaml"
        bad.write_text("- just\n- a list\n", encoding="utf-8")

        result = invoke(record_path, "config", "show", "--schema", str(bad))

        assert result.exit_code == ExitCode.GENERAL_ERROR

    def test_set_saves_and_marks_publishing(self, record_path, host):
        result = invoke(record_path, "config", "set", "config.toml/params.text_color=blue")

        assert result.exit_code == 0
        assert "Saved in commit" in result.output
        assert tomllib.loads(host.text("config.toml"))["params"]["text_color"] == "blue"
        assert DocumentStore.load(record_path).publish_status == PublishStatus.PUBLISHING

    def test_set_typed_values(self, record_path, host):
        result = invoke(
            record_path, "config", "set",
            "config.toml/params.max_posts=10",
            "config.toml/params.show_reading_time=false",
        )

        assert result.exit_code == 0
        params = tomllib.loads(host.text("config.toml"))["params"]
        assert params["max_posts"] == 10
        assert params["show_reading_time"] is False

    def test_set_same_value_makes_no_commit(self, record_path, host):
        result = invoke(record_path, "config", "set", "config.toml/params.text_color=red")

        assert result.exit_code == 0
        assert "Nothing to save" in result.output
        assert host.messages == []

    def test_set_malformed_assignment(self, record_path):
        result = invoke(record_path, "config", "set", "no-equals-sign")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "KEY=VALUE" in result.output

    def test_set_commit_failure(self, record_path, host):
        host.fail_on('create_tree', APIAccessError("Injected failure", status_code=500))

        result = invoke(record_path, "config", "set", "config.toml/params.text_color=blue")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Save failed" in result.output
        assert tomllib.loads(host.text("config.toml"))["params"]["text_color"] == "red"

    def test_set_string_flag_keeps_text(self, record_path, host):
        result = invoke(record_path, "config", "set", "--string", "config.toml/params.text_color=true")

        assert result.exit_code == 0
        assert tomllib.loads(host.text("config.toml"))["params"]["text_color"] == "true"


class TestPageSettingsCommands:
    """Test cases for page show and page set."""

    def test_show_lists_frontmatter(self, record_path):
        result = invoke(record_path, "page", "show", "about.md", "--body")

        assert result.exit_code == 0
        assert "title" in result.output
        assert "'About'" in result.output
        assert "About us" in result.output

    def test_show_missing_page(self, record_path):
        result = invoke(record_path, "page", "show", "missing.md")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "not found" in result.output.lower()

    def test_set_merges_settings_and_keeps_body(self, record_path, host):
        result = invoke(record_path, "page", "set", "about.md", "draft=true", "weight=3")

        assert result.exit_code == 0
        assert host.text("content/about.md") == "---\ntitle: About\ndraft: true\nweight: 3\n---\nAbout us\n"
        assert host.messages == ["Updated content, about"]
        assert DocumentStore.load(record_path).publish_status == PublishStatus.PUBLISHING

    def test_set_unset_removes_key(self, record_path, host):
        host.seed({"content/about.md": "---\ntitle: About\ndraft: true\n---\nAbout us\n"})

        result = invoke(record_path, "page", "set", "about.md", "--unset", "draft")

        assert result.exit_code == 0
        assert host.text("content/about.md") == "---\ntitle: About\n---\nAbout us\n"

    def test_set_same_value_makes_no_commit(self, record_path, host):
        result = invoke(record_path, "page", "set", "about.md", "title=About")

        assert result.exit_code == 0
        assert "unchanged" in result.output
        assert host.messages == []

    def test_set_without_changes_is_an_error(self, record_path):
        result = invoke(record_path, "page", "set", "about.md")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Nothing to change" in result.output
