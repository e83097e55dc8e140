"""
Local vs remote reconciliation.

Documents are compared by id only. Every local document is sent again on
each run, so content drift on the remote side is overwritten without any
hashing.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Sequence, Set

from .document_builder import Document
from .logging_manager import get_logger
from .remote_index import RemoteDocument

logger = get_logger(__name__)


@dataclass
class SyncPlan:
    to_delete: Set[str] = field(default_factory=set)
    to_upsert: List[Document] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.to_delete and not self.to_upsert


def duplicate_ids(local: Sequence[Document]) -> List[str]:
    counts = Counter(document.id for document in local)
    return sorted(doc_id for doc_id, count in counts.items() if count > 1)


def reconcile(local: Sequence[Document], remote: Sequence[RemoteDocument]) -> SyncPlan:
    """Ids stored remotely but absent locally are deleted; all local documents are upserted."""
    duplicates = duplicate_ids(local)
    if duplicates:
        # The last document with a given id replaces the earlier ones remotely
        logger.warning(f"{len(duplicates)} document ids are shared by several source items; the last one wins",
                       extra={'details': {'duplicate_ids': duplicates[:50]}})

    remote_ids = {document.id for document in remote}
    local_ids = {document.id for document in local}
    plan = SyncPlan(to_delete=remote_ids - local_ids, to_upsert=list(local))
    logger.info(f"Sync plan: {len(plan.to_delete)} to delete, {len(plan.to_upsert)} to upsert")
    return plan
