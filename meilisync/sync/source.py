"""
Document sources consumed by the sync engine.

``DocumentSource`` is the contract the host site pipeline implements.
``SiteDirectorySource`` is a file-system implementation for sites laid out
as ``_<collection>/`` folders of Markdown or HTML files with YAML front
matter.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from .logging_manager import get_logger

logger = get_logger(__name__)

CONTENT_SUFFIXES = ('.md', '.markdown', '.html')
FRONT_MATTER_DELIMITER = '---'
DATED_NAME = re.compile(r'^(\d{4})-(\d{2})-(\d{2})-(.+)$')
# Front matter date spellings that YAML leaves as strings
DATE_FORMATS = ('%Y-%m-%d %H:%M:%S %z', '%Y-%m-%d %H:%M:%S')


@dataclass(frozen=True)
class SourceItem:
    """A single content record of a collection. Read-only to the sync engine."""
    id: str
    url: str
    content: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChangedFile:
    relative_path: str


class Collection:
    """A named, ordered group of source items."""

    def __init__(self, name: str, items: Iterable[SourceItem]):
        self.name = name
        self._items = list(items)

    def items(self) -> List[SourceItem]:
        return list(self._items)

    def __len__(self):
        return len(self._items)


class DocumentSource(ABC):

    @abstractmethod
    def get_collection(self, name: str) -> Optional[Collection]:
        pass

    def has_incremental_change_info(self) -> bool:
        return False

    def changed_files(self) -> List[ChangedFile]:
        return []


class InMemorySource(DocumentSource):
    """Source built from already loaded collections, used by hosts that parse content themselves."""

    def __init__(self, collections: Dict[str, Iterable[SourceItem]], changed_paths: Optional[Iterable[str]] = None):
        self.collections = {name: Collection(name, items) for name, items in collections.items()}
        self.changed_paths = None if changed_paths is None else list(changed_paths)

    def get_collection(self, name: str) -> Optional[Collection]:
        return self.collections.get(name)

    def has_incremental_change_info(self) -> bool:
        return self.changed_paths is not None

    def changed_files(self) -> List[ChangedFile]:
        return [ChangedFile(relative_path=p) for p in self.changed_paths or []]


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Split a document into its YAML front matter and body.

    Files that do not open with a ``---`` line have no front matter.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return {}, text
    for index in range(1, len(lines)):
        if lines[index].strip() == FRONT_MATTER_DELIMITER:
            front_matter = yaml.safe_load(''.join(lines[1:index])) or {}
            if not isinstance(front_matter, dict):
                return {}, text
            return front_matter, ''.join(lines[index + 1:])
    return {}, text


def parse_date(value: Any) -> Any:
    """Parse a string date written in one of DATE_FORMATS; anything else is returned as is."""
    if not isinstance(value, str):
        return value
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
    return value


def filename_date(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


class SiteDirectorySource(DocumentSource):
    """
    Reads collections from a site directory.

    Collection ``name`` lives in ``<site_dir>/_<name>/``. Dated files
    (``YYYY-MM-DD-slug.md``) get ``/YYYY/MM/DD/slug`` ids; other files get
    ``/<collection>/<slug>``. A ``permalink`` in front matter overrides the URL.
    """

    def __init__(self, site_dir: Union[str, Path], changed_paths: Optional[Iterable[str]] = None):
        self.site_dir = Path(site_dir)
        self.changed_paths = None if changed_paths is None else list(changed_paths)
        self._collections: Dict[str, Optional[Collection]] = {}

    def get_collection(self, name: str) -> Optional[Collection]:
        if name not in self._collections:
            self._collections[name] = self._load_collection(name)
        return self._collections[name]

    def has_incremental_change_info(self) -> bool:
        return self.changed_paths is not None

    def changed_files(self) -> List[ChangedFile]:
        return [ChangedFile(relative_path=p) for p in self.changed_paths or []]

    def _load_collection(self, name: str) -> Optional[Collection]:
        directory = self.site_dir / f"_{name}"
        if not directory.is_dir():
            return None
        paths = sorted(p for p in directory.rglob('*') if p.is_file() and p.suffix.lower() in CONTENT_SUFFIXES)
        items = [self._load_item(name, directory, path) for path in paths]
        logger.debug(f"Loaded {len(items)} items from {directory}")
        return Collection(name, items)

    def _load_item(self, collection_name: str, directory: Path, path: Path) -> SourceItem:
        data, body = split_front_matter(path.read_text(encoding='utf-8'))
        relative = PurePosixPath(path.relative_to(directory).as_posix())
        parent = str(relative.parent) if str(relative.parent) != '.' else ''
        stem = relative.stem

        match = DATED_NAME.match(stem)
        if match:
            year, month, day, slug = match.groups()
            item_id = f"/{year}/{month}/{day}/{slug}"
            if data and data.get('date') is None:
                data['date'] = filename_date(year, month, day)
        else:
            slug = stem
            item_id = f"/{collection_name}/{parent + '/' if parent else ''}{slug}"

        if 'date' in data:
            data['date'] = parse_date(data['date'])
        url = data.get('permalink') or f"{item_id}/"
        return SourceItem(id=item_id, url=url, content=body, data=data)
