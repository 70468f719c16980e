"""Unit tests for site_config.session module."""

import threading
import tomllib

import pytest
import yaml

from src.cli.models import BuildStatus, DocumentRecord
from src.repo_client.content_store import RemoteContentStore
from src.repo_client.errors import APIAccessError
from src.site_config import session as session_module
from src.site_config.errors import ConfigNotReadyError, ParseError, SaveError
from src.site_config.session import (
    ConfigSession,
    config_commit_message,
    ensure_config_ready,
    load_config_model,
    save_config_model,
)
from tests.fixtures.fake_host import FakeHost
from tests.fixtures.sample_sites import DIRECTORY_SITE_FILES, SAMPLE_CONFIG_TOML, SAMPLE_SCHEMA


@pytest.fixture
def host():
    return FakeHost({"config.toml": SAMPLE_CONFIG_TOML, "content/_index.md": "home"})


@pytest.fixture
def session(host):
    config_session = ConfigSession(RemoteContentStore(host), SAMPLE_SCHEMA)
    config_session.load()
    return config_session


COLLIDING_TOML = '"a.b" = 1\n[a]\nb = 2\n[params]\ntext_color = "red"\n'


def built_record(status=BuildStatus.BUILT):
    return DocumentRecord(document_id="doc-1", repository="acme/site@main", build_status=status)


class TestLoad:
    """Test cases for ConfigSession.load()."""

    def test_form_data_is_categorised(self, session):
        form = session.form_data

        assert form["general"]["config.toml/title"] == "Example Site"
        assert form["appearance"] == {
            "config.toml/params.text_color": "red",
            "config.toml/params.show_reading_time": True,
        }
        assert form["advanced"] == {"config.toml/params.tags": ["hugo", "blog"]}
        assert form["misc"]["config.toml/params.social.twitter"] == "example"
        assert form["misc"]["config.toml/menu.main"] == [{"name": "Home", "url": "/"}]

    def test_raw_files_and_sections(self, session):
        result = session.result

        assert result.raw_files["config.toml"].content == SAMPLE_CONFIG_TOML
        assert [section.key for section in result.sections] == ["general", "appearance", "advanced"]
        assert result.errors == []

    def test_trace_records_read_stages(self, session):
        assert [entry.stage for entry in session.trace] == ['discover', 'parse', 'flatten', 'categorize']

    def test_load_is_cached(self, session):
        first = session.result
        assert session.load() is first
        assert session.load(force=True) is not first

    def test_concurrent_loads_run_once(self, host, monkeypatch):
        """Callers racing on load share a single pipeline run."""
        calls = []
        original = session_module.ConfigDiscovery.discover

        def counting_discover(self):
            calls.append(1)
            return original(self)

        monkeypatch.setattr(session_module.ConfigDiscovery, "discover", counting_discover)
        config_session = ConfigSession(RemoteContentStore(host))
        results = []
        threads = [threading.Thread(target=lambda: results.append(config_session.load())) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    def test_unparseable_file_is_collected(self):
        files = dict(DIRECTORY_SITE_FILES)
        files["config/_default/broken.toml"] = "title = "
        config_session = ConfigSession(RemoteContentStore(FakeHost(files)))

        result = config_session.load()

        assert "config/_default/broken.toml" not in result.documents
        assert isinstance(result.errors[0], ParseError)
        assert result.flat_data["config/_default/hugo.toml/title"] == "Directory Site"

    def test_colliding_keys_exclude_file(self):
        """A file whose keys collide once flattened is reported and not editable."""
        host = FakeHost({"config.toml": COLLIDING_TOML})
        config_session = ConfigSession(RemoteContentStore(host))

        result = config_session.load()

        assert "config.toml" not in result.documents
        assert isinstance(result.errors[0], ParseError)
        assert "config.toml/a.b" in result.errors[0].reason
        assert result.flat_data == {}

    def test_access_before_load_raises(self, host):
        config_session = ConfigSession(RemoteContentStore(host))

        with pytest.raises(RuntimeError):
            config_session.update("config.toml/title", "x")


class TestEditing:
    """Test cases for get(), update() and change tracking."""

    def test_update_existing_key(self, session):
        session.update("config.toml/params.text_color", "blue")

        assert session.get("config.toml/params.text_color") == "blue"
        assert session.has_unsaved_changes

    def test_update_schema_field_goes_to_its_category(self, session):
        session.update("config.toml/params.max_posts", 5)
        assert session.form_data["appearance"]["config.toml/params.max_posts"] == 5

    def test_update_unknown_key_goes_to_misc(self, session):
        session.update("config.toml/params.new_flag", True)
        assert session.form_data["misc"]["config.toml/params.new_flag"] is True

    def test_discard_changes(self, session):
        session.update("config.toml/title", "Changed")
        session.discard_changes()

        assert session.get("config.toml/title") == "Example Site"
        assert not session.has_unsaved_changes

    def test_get_default(self, session):
        assert session.get("config.toml/nothing", "fallback") == "fallback"


class TestSave:
    """Test cases for ConfigSession.save()."""

    def test_save_commits_changed_file(self, session, host):
        session.update("config.toml/params.text_color", "blue")

        result = session.save()

        saved = tomllib.loads(host.text("config.toml"))
        assert result.success
        assert result.commit is not None
        assert saved["params"]["text_color"] == "blue"
        assert saved["params"]["social"] == {"twitter": "example"}
        assert saved["menu"]["main"] == [{"name": "Home", "url": "/"}]
        assert host.messages == [config_commit_message(["config.toml"])]
        assert not session.has_unsaved_changes

    def test_save_applies_schema_defaults(self, session, host):
        session.update("config.toml/params.show_reading_time", "")

        session.save()

        saved = tomllib.loads(host.text("config.toml"))
        assert saved["params"]["show_reading_time"] is False
        assert saved["params"]["max_posts"] == 0

    def test_save_trace_covers_write_stages(self, session):
        session.update("config.toml/title", "New")
        session.save()

        assert [entry.stage for entry in session.trace] == [
            'default', 'unflatten', 'serialize', 'commit',
        ]

    def test_unchanged_save_makes_no_commit(self, host):
        config_session = ConfigSession(RemoteContentStore(host))
        config_session.load()

        result = config_session.save()

        assert result.success
        assert result.commit is None
        assert [outcome.changed for outcome in result.outcomes] == [False]
        assert host.messages == []
        assert host.text("config.toml") == SAMPLE_CONFIG_TOML

    def test_only_changed_files_are_written(self):
        host = FakeHost(DIRECTORY_SITE_FILES)
        config_session = ConfigSession(RemoteContentStore(host))
        config_session.load()
        config_session.update("config/_default/params.yaml/author.name", "Sam")

        result = config_session.save()

        changed = {outcome.path for outcome in result.outcomes if outcome.changed}
        assert changed == {"config/_default/params.yaml"}
        assert result.commit.paths == ["config/_default/params.yaml"]
        assert yaml.safe_load(host.text("config/_default/params.yaml"))["author"]["name"] == "Sam"
        assert host.text("config/_default/menus.json") == DIRECTORY_SITE_FILES["config/_default/menus.json"]

    def test_new_key_creates_nested_value(self, session, host):
        session.update("config.toml/params.seo.description", "A site")
        session.save()

        assert tomllib.loads(host.text("config.toml"))["params"]["seo"] == {"description": "A site"}

    def test_commit_failure_keeps_form_data(self, session, host):
        """A failed commit marks files failed and leaves the session editable."""
        before = host.files()
        session.update("config.toml/params.text_color", "blue")
        host.fail_on('create_tree', APIAccessError("Injected failure", status_code=500))

        result = session.save()

        assert not result.success
        assert result.commit is None
        assert result.failed_paths == ["config.toml"]
        assert session.get("config.toml/params.text_color") == "blue"
        assert session.has_unsaved_changes
        assert host.files() == before

    def test_key_without_file_path_raises(self, session, host):
        session.update("nofile/a", 1)

        with pytest.raises(SaveError):
            session.save()
        assert host.messages == []

    def test_edit_to_excluded_file_is_refused(self):
        """Saving a key of a file that failed to load never overwrites it."""
        host = FakeHost({"config.toml": COLLIDING_TOML})
        config_session = ConfigSession(RemoteContentStore(host))
        config_session.load()
        config_session.update("config.toml/params.text_color", "blue")

        with pytest.raises(SaveError) as exc_info:
            config_session.save()

        assert exc_info.value.failed_paths == ["config.toml/params.text_color"]
        assert host.messages == []
        assert host.text("config.toml") == COLLIDING_TOML

    def test_trace_holds_latest_run_only(self, session):
        session.update("config.toml/title", "One")
        session.save()
        session.update("config.toml/title", "Two")
        session.save()

        assert len(session.trace) == 4


class TestModelFunctions:
    """Test cases for the module-level load/save helpers."""

    def test_not_built_raises(self, host):
        with pytest.raises(ConfigNotReadyError) as exc_info:
            load_config_model(RemoteContentStore(host), built_record(BuildStatus.BUILDING))

        assert exc_info.value.document_id == "doc-1"
        assert exc_info.value.build_status == "BUILDING"

    def test_missing_status_raises(self):
        with pytest.raises(ConfigNotReadyError):
            ensure_config_ready(object())

    def test_load_config_model(self, host):
        config_session = load_config_model(RemoteContentStore(host), built_record(), SAMPLE_SCHEMA)

        assert config_session.loaded
        assert config_session.form_data["general"]["config.toml/title"] == "Example Site"

    def test_save_config_model(self, host):
        store = RemoteContentStore(host)
        form = load_config_model(store, built_record(), SAMPLE_SCHEMA).form_data
        form["general"]["config.toml/title"] = "Renamed"

        result = save_config_model(store, form, SAMPLE_SCHEMA)

        assert result.commit is not None
        assert tomllib.loads(host.text("config.toml"))["title"] == "Renamed"

    def test_commit_message(self):
        assert config_commit_message(["config.toml", "config/_default/params.yaml"]) == \
            "Changed config settings in config.toml, config/_default/params.yaml"
