"""
Indexer Configuration for the Sync System.

The settings live under the ``meilisearch`` key of the site configuration
file. They are parsed once per run into an ``IndexerConfig`` that every sync
component receives explicitly.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Union, Any, Mapping
from pydantic import BaseModel, Field, field_validator

from .error_tracker import ConfigurationError
from .id_generator import IdStrategy
from .logging_manager import LOG_LEVELS


CONFIG_SECTION = "meilisearch"
URL_ENV_VAR = "MEILISEARCH_URL"
API_KEY_ENV_VAR = "MEILISEARCH_API_KEY"

DEFAULT_INDEX_NAME = "jekyll_documents"
DEFAULT_FIELDS = ["title", "content", "url", "date"]
DEFAULT_COLLECTION = "posts"

# Accepted id_format spellings
ID_FORMATS = {
    "default": IdStrategy.BY_NUMBER,
    "number": IdStrategy.BY_NUMBER,
    "id": IdStrategy.BY_ID,
    "url": IdStrategy.BY_URL,
    IdStrategy.BY_NUMBER.value: IdStrategy.BY_NUMBER,
    IdStrategy.BY_ID.value: IdStrategy.BY_ID,
    IdStrategy.BY_URL.value: IdStrategy.BY_URL,
}


class CollectionConfig(BaseModel):
    """Which fields of a collection are indexed and how its ids are built."""
    fields: List[str] = Field(default_factory=lambda: list(DEFAULT_FIELDS), description="Fields copied into each document")
    id_format: IdStrategy = Field(default=IdStrategy.BY_ID, description="Id strategy (default, id, url)")

    @field_validator('fields', mode='before')
    @classmethod
    def default_fields(cls, v):
        """A null field list means the default field set."""
        if v is None:
            return list(DEFAULT_FIELDS)
        return v

    @field_validator('id_format', mode='before')
    @classmethod
    def resolve_id_format(cls, v):
        """Resolve the configured id_format string to an IdStrategy."""
        if v is None:
            return IdStrategy.BY_ID
        if isinstance(v, IdStrategy):
            return v
        strategy = ID_FORMATS.get(str(v).strip().lower())
        if strategy is None:
            raise ValueError(f"Unknown id_format '{v}', expected one of: default, id, url")
        return strategy


def default_collections() -> Dict[str, CollectionConfig]:
    return {DEFAULT_COLLECTION: CollectionConfig(fields=list(DEFAULT_FIELDS))}


class IndexerConfig(BaseModel):
    """Settings of the ``meilisearch`` section."""
    url: Optional[str] = Field(None, description="Base URL of the search service")
    api_key: Optional[str] = Field(None, description="API key sent as a bearer token")
    index_name: str = Field(default=DEFAULT_INDEX_NAME, description="Remote index uid")
    disable_in_development: bool = Field(default=False, description="Skip indexing in the development environment")
    collections: Dict[str, CollectionConfig] = Field(default_factory=default_collections, description="Collections to index")
    timeout: int = Field(default=30, description="Request timeout in seconds")

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(None, description="Log file path")

    @field_validator('url')
    @classmethod
    def strip_trailing_slash(cls, v):
        if v is None:
            return v
        v = v.strip().rstrip('/')
        return v or None

    @field_validator('index_name', mode='before')
    @classmethod
    def default_index_name(cls, v):
        return v or DEFAULT_INDEX_NAME

    @field_validator('collections', mode='before')
    @classmethod
    def fill_collection_settings(cls, v):
        """Collections listed without settings use the defaults; null means posts only."""
        if v is None:
            return default_collections()
        if isinstance(v, (list, tuple)):
            return {name: {} for name in v}
        if not isinstance(v, Mapping):
            raise ValueError(f"collections must be a mapping or a list of names, got {type(v).__name__}")
        return {name: (settings if settings is not None else {}) for name, settings in v.items()}

    @field_validator('log_level', mode='before')
    @classmethod
    def known_log_level(cls, v):
        level = str(v or "INFO").strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level '{v}', expected one of: {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def from_site_config(cls, site_config: Optional[Mapping[str, Any]], environ: Optional[Mapping[str, str]] = None) -> 'IndexerConfig':
        """
        Build the configuration from a parsed site configuration.

        ``url`` and ``api_key`` fall back to MEILISEARCH_URL and
        MEILISEARCH_API_KEY when the section does not set them.
        """
        environ = os.environ if environ is None else environ
        if site_config is not None and not isinstance(site_config, Mapping):
            raise ConfigurationError(f"Site configuration must be a mapping, got {type(site_config).__name__}")
        section = (site_config or {}).get(CONFIG_SECTION) or {}
        if not isinstance(section, Mapping):
            raise ConfigurationError(
                f"The '{CONFIG_SECTION}' section must be a mapping, got {type(section).__name__}",
                recovery_suggestion=f"Put url, api_key and collections under '{CONFIG_SECTION}:'",
            )
        section = dict(section)
        if not section.get('url') and environ.get(URL_ENV_VAR):
            section['url'] = environ[URL_ENV_VAR]
        if not section.get('api_key') and environ.get(API_KEY_ENV_VAR):
            section['api_key'] = environ[API_KEY_ENV_VAR]
        return cls(**section)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], environ: Optional[Mapping[str, str]] = None) -> 'IndexerConfig':
        """Load configuration from a site YAML file."""
        return cls.from_site_config(load_site_config(path), environ=environ)

    def ensure_credentials(self) -> None:
        """Raise ConfigurationError unless both url and api_key are set."""
        if not self.url:
            raise ConfigurationError(
                "Meilisearch URL not set in config. Skipping indexing.",
                index_name=self.index_name,
                recovery_suggestion=f"Set meilisearch.url or {URL_ENV_VAR}",
            )
        if not self.api_key:
            raise ConfigurationError(
                "Meilisearch API key not set in config. Skipping indexing.",
                index_name=self.index_name,
                recovery_suggestion=f"Set meilisearch.api_key or {API_KEY_ENV_VAR}",
            )

    def build_headers(self) -> Dict[str, str]:
        return {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self.api_key}',
        }


def load_site_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a site YAML file into a mapping."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    return data or {}
