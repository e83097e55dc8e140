"""
Stable document identifiers.

Ids must be usable as index primary keys, so every strategy runs its raw
value through ``normalize``.
"""

import re
from enum import Enum
from typing import Any, Optional

MAX_ID_LENGTH = 100

_SEPARATORS = re.compile(r'[/\\]')
_DISALLOWED = re.compile(r'[^a-zA-Z0-9_-]')
_DASH_RUNS = re.compile(r'-+')


class IdStrategy(str, Enum):
    """How a document id is derived from a source item."""
    BY_NUMBER = "by-number"  # "{collection}-{number}" when the item has a numeric number field
    BY_ID = "by-id"          # the item's own identifier
    BY_URL = "by-url"        # the item's canonical URL


def normalize(value: Optional[str]) -> str:
    """Map any string onto ``[a-z0-9_-]{0,100}`` with no repeated dashes."""
    if not value:
        return ""
    value = _SEPARATORS.sub('-', str(value))
    value = _DISALLOWED.sub('-', value)
    value = _DASH_RUNS.sub('-', value)
    return value.lower()[:MAX_ID_LENGTH]


def _numeric_number(data: Any) -> Optional[str]:
    number = data.get('number') if data else None
    if isinstance(number, bool):
        return None
    if isinstance(number, (int, float)):
        return str(number)
    if isinstance(number, str) and number.strip().isdigit():
        return number.strip()
    return None


def generate_id(item, collection_name: str, strategy: IdStrategy = IdStrategy.BY_ID) -> str:
    """
    Derive the id of ``item`` within ``collection_name``.

    BY_NUMBER falls back to BY_ID when the item has no numeric ``number``.
    """
    if strategy == IdStrategy.BY_NUMBER:
        number = _numeric_number(item.data)
        if number is not None:
            return normalize(f"{collection_name}-{number}")
        return normalize(item.id)
    if strategy == IdStrategy.BY_URL:
        return normalize(item.url)
    return normalize(item.id)
