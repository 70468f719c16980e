"""Unit tests for site_config.categorizer module."""

from src.site_config.categorizer import (
    MISC_CATEGORY,
    categorize,
    decategorize,
    schema_categories,
    sections_from_schema,
)
from tests.fixtures.sample_sites import SAMPLE_SCHEMA, SAMPLE_UI_SCHEMA


FLAT = {
    "config.toml/title": "Example Site",
    "config.toml/baseURL": "https://example.org/",
    "config.toml/params.text_color": "red",
    "config.toml/params.tags": ["hugo"],
    "config.toml/languageCode": "en-us",
}


class TestSchemaCategories:
    """Test cases for schema_categories() and sections_from_schema()."""

    def test_categories_in_declaration_order(self):
        categories = schema_categories(SAMPLE_SCHEMA)

        assert [category.key for category in categories] == ["general", "appearance", "advanced"]
        assert categories[0].title == "General"
        assert categories[0].fields == ["config.toml/title", "config.toml/baseURL"]

    def test_title_falls_back_to_key(self):
        categories = schema_categories({"properties": {"seo": {"properties": {}}}})
        assert categories[0].title == "seo"

    def test_no_schema(self):
        assert schema_categories(None) == []
        assert sections_from_schema(None) == []

    def test_sections_follow_ui_order_and_skip_hidden(self):
        sections = sections_from_schema(SAMPLE_SCHEMA, SAMPLE_UI_SCHEMA)
        assert [section.key for section in sections] == ["appearance", "general"]

    def test_sections_without_ui_order(self):
        sections = sections_from_schema(SAMPLE_SCHEMA, {"general": {"ui:widget": "hidden"}})
        assert [section.key for section in sections] == ["appearance", "advanced"]

    def test_unordered_sections_follow_ordered_ones(self):
        sections = sections_from_schema(SAMPLE_SCHEMA, {"ui:order": ["advanced", "missing"]})
        assert [section.key for section in sections] == ["advanced", "general", "appearance"]


class TestCategorize:
    """Test cases for categorize() and decategorize()."""

    def test_every_key_lands_in_exactly_one_category(self):
        form = categorize(FLAT, SAMPLE_SCHEMA)

        assert form["general"] == {
            "config.toml/title": "Example Site",
            "config.toml/baseURL": "https://example.org/",
        }
        assert form["appearance"] == {"config.toml/params.text_color": "red"}
        assert form["advanced"] == {"config.toml/params.tags": ["hugo"]}
        assert form[MISC_CATEGORY] == {"config.toml/languageCode": "en-us"}
        assert decategorize(form) == FLAT

    def test_every_category_is_present(self):
        form = categorize({"config.toml/title": "x"}, SAMPLE_SCHEMA)

        assert form["appearance"] == {}
        assert form["advanced"] == {}
        assert MISC_CATEGORY not in form

    def test_without_schema_everything_is_misc(self):
        assert categorize(FLAT, None) == {MISC_CATEGORY: FLAT}

    def test_key_declared_twice_goes_to_first_category(self):
        schema = {"properties": {
            "one": {"properties": {"config.toml/title": {}}},
            "two": {"properties": {"config.toml/title": {}}},
        }}

        form = categorize({"config.toml/title": "x"}, schema)

        assert form == {"one": {"config.toml/title": "x"}, "two": {}}

    def test_category_named_keys_are_dropped(self):
        """Already-categorised input is not nested a second time."""
        flat = dict(FLAT)
        flat["general"] = {"config.toml/title": "stale"}
        flat[MISC_CATEGORY] = {"x": 1}
        flat["_preserved"] = {}

        form = categorize(flat, SAMPLE_SCHEMA)

        assert "general" not in form[MISC_CATEGORY]
        assert MISC_CATEGORY not in form[MISC_CATEGORY]
        assert form["general"]["config.toml/title"] == "Example Site"

    def test_decategorize_skips_non_mapping_categories(self):
        assert decategorize({"general": {"a": 1}, "broken": "text"}) == {"a": 1}
