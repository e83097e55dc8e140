"""
Turns source collections into index-ready documents.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from .config import CollectionConfig
from .id_generator import generate_id
from .logging_manager import get_logger
from .source import DocumentSource

logger = get_logger(__name__)

RESERVED_FIELDS = ('id', 'content', 'url')
DATE_FORMAT = '%Y-%m-%d'


@dataclass
class Document:
    """The unit of sync: one JSON object in the remote index."""
    id: str
    content: str
    url: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'content': self.content,
            'url': self.url,
        }
        data.update(self.fields)
        return data


def serialize_value(value: Any) -> Any:
    """Dates and datetimes are indexed as YYYY-MM-DD."""
    if isinstance(value, (date, datetime)):
        return value.strftime(DATE_FORMAT)
    return value


class DocumentBuilder:
    """Builds documents for every configured collection of a source."""

    def build(self, collections: Mapping[str, CollectionConfig], source: DocumentSource) -> List[Document]:
        documents: List[Document] = []

        for collection_name, settings in collections.items():
            collection = source.get_collection(collection_name)
            if collection is None:
                logger.warning(f"Collection '{collection_name}' not found. Skipping.")
                continue

            logger.info(f"Processing collection: '{collection_name}'...")
            built = [
                self.build_document(item, collection_name, settings)
                for item in collection.items()
                if item.data  # no front matter
            ]
            logger.info(f"Built {len(built)} documents from collection '{collection_name}'")
            documents.extend(built)

        if not documents:
            logger.info(f"No documents found across configured collections: {', '.join(collections.keys())}. Cleaning up index...")
        return documents

    def build_document(self, item, collection_name: str, settings: CollectionConfig) -> Document:
        fields: Dict[str, Optional[Any]] = {}
        for name in settings.fields:
            if name in RESERVED_FIELDS:
                continue
            fields[name] = serialize_value(item.data.get(name))

        return Document(
            id=generate_id(item, collection_name, settings.id_format),
            content=(item.content or '').strip(),
            url=item.url,
            fields=fields,
        )
