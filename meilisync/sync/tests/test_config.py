"""
Tests for the indexer configuration.
"""

import pytest
from pydantic import ValidationError

from ..config import (
    DEFAULT_FIELDS, CollectionConfig, IndexerConfig, load_site_config
)
from ..error_tracker import ConfigurationError
from ..id_generator import IdStrategy


class TestCollectionConfig:

    def test_defaults(self):
        settings = CollectionConfig()
        assert settings.fields == DEFAULT_FIELDS
        assert settings.id_format == IdStrategy.BY_ID

    @pytest.mark.parametrize("value, expected", [
        (None, IdStrategy.BY_ID),
        ("id", IdStrategy.BY_ID),
        ("url", IdStrategy.BY_URL),
        ("default", IdStrategy.BY_NUMBER),
        ("number", IdStrategy.BY_NUMBER),
        ("by-url", IdStrategy.BY_URL),
        ("URL", IdStrategy.BY_URL),
    ])
    def test_id_format_is_resolved(self, value, expected):
        assert CollectionConfig(id_format=value).id_format == expected

    def test_unknown_id_format(self):
        with pytest.raises(ValidationError):
            CollectionConfig(id_format="slug")

    def test_null_fields_mean_defaults(self):
        assert CollectionConfig(fields=None).fields == DEFAULT_FIELDS


class TestIndexerConfig:

    def test_defaults(self):
        config = IndexerConfig()
        assert config.index_name == "jekyll_documents"
        assert config.disable_in_development is False
        assert config.timeout == 30
        assert list(config.collections) == ["posts"]
        assert config.collections["posts"].fields == ["title", "content", "url", "date"]

    def test_trailing_slash_is_stripped(self):
        assert IndexerConfig(url="https://search.example.com//").url == "https://search.example.com"

    def test_explicit_empty_collections(self):
        assert IndexerConfig(collections={}).collections == {}

    def test_collections_without_settings(self):
        config = IndexerConfig(collections={"posts": None, "notes": {"id_format": "url"}})
        assert config.collections["posts"] == CollectionConfig()
        assert config.collections["notes"].id_format == IdStrategy.BY_URL

    def test_collection_list(self):
        config = IndexerConfig(collections=["posts", "notes"])
        assert list(config.collections) == ["posts", "notes"]

    def test_null_index_name_uses_default(self):
        assert IndexerConfig(index_name=None).index_name == "jekyll_documents"

    def test_scalar_collections_are_rejected(self):
        with pytest.raises(ValidationError):
            IndexerConfig(collections="posts")

    def test_log_level_is_normalized(self):
        assert IndexerConfig(log_level="debug").log_level == "DEBUG"
        assert IndexerConfig(log_level=None).log_level == "INFO"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            IndexerConfig(log_level="loud")

    def test_from_site_config(self):
        site_config = {
            "title": "My site",
            "meilisearch": {
                "url": "http://localhost:7700/",
                "api_key": "key",
                "index_name": "blog",
                "collections": {"posts": {"fields": ["title", "tags"], "id_format": "default"}},
            },
        }
        config = IndexerConfig.from_site_config(site_config, environ={})
        assert config.url == "http://localhost:7700"
        assert config.index_name == "blog"
        assert config.collections["posts"].fields == ["title", "tags"]
        assert config.collections["posts"].id_format == IdStrategy.BY_NUMBER

    def test_environment_fallback(self):
        environ = {"MEILISEARCH_URL": "http://env:7700", "MEILISEARCH_API_KEY": "env-key"}
        config = IndexerConfig.from_site_config({}, environ=environ)
        assert config.url == "http://env:7700"
        assert config.api_key == "env-key"

    def test_site_config_wins_over_environment(self):
        environ = {"MEILISEARCH_API_KEY": "env-key"}
        config = IndexerConfig.from_site_config({"meilisearch": {"api_key": "file-key"}}, environ=environ)
        assert config.api_key == "file-key"

    def test_missing_section(self):
        config = IndexerConfig.from_site_config(None, environ={})
        assert config.url is None
        assert config.api_key is None

    @pytest.mark.parametrize("site_config", [{"meilisearch": "http://search.local"}, {"meilisearch": ["url"]}, ["meilisearch"]])
    def test_non_mapping_section(self, site_config):
        with pytest.raises(ConfigurationError):
            IndexerConfig.from_site_config(site_config, environ={})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "_config.yml"
        path.write_text(
            "title: Blog\n"
            "meilisearch:\n"
            "  url: http://localhost:7700\n"
            "  api_key: key\n"
            "  disable_in_development: true\n"
            "  collections:\n"
            "    posts:\n"
            "      fields: [title, date]\n"
            "    recipes:\n"
            "      id_format: url\n",
            encoding="utf-8",
        )
        config = IndexerConfig.from_yaml(path, environ={})
        assert config.disable_in_development is True
        assert list(config.collections) == ["posts", "recipes"]
        assert config.collections["recipes"].id_format == IdStrategy.BY_URL

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_site_config(tmp_path / "missing.yml")

    def test_load_empty_file(self, tmp_path):
        path = tmp_path / "_config.yml"
        path.write_text("", encoding="utf-8")
        assert load_site_config(path) == {}

    @pytest.mark.parametrize("settings, missing", [
        ({"api_key": "key"}, "URL"),
        ({"url": "http://localhost:7700"}, "API key"),
        ({"url": "/", "api_key": "key"}, "URL"),
    ])
    def test_ensure_credentials(self, settings, missing):
        with pytest.raises(ConfigurationError) as exc_info:
            IndexerConfig(**settings).ensure_credentials()
        assert missing in exc_info.value.message

    def test_build_headers(self):
        headers = IndexerConfig(url="http://localhost:7700", api_key="key").build_headers()
        assert headers == {"Content-Type": "application/json", "Authorization": "Bearer key"}
