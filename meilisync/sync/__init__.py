"""
Sync module for keeping a remote search index in step with a site's content.

A run builds documents from the configured collections, compares their ids
with the ids stored in the remote index, deletes the obsolete ones and
upserts the rest. When the stored ids cannot be read the index is wiped and
fully rebuilt instead.
"""

from .config import (
    IndexerConfig, CollectionConfig, load_site_config
)

from .id_generator import (
    IdStrategy, generate_id, normalize
)

from .source import (
    DocumentSource, Collection, SourceItem, ChangedFile,
    InMemorySource, SiteDirectorySource
)

from .document_builder import (
    Document, DocumentBuilder
)

from .remote_index import (
    RemoteIndexClient, RemoteDocument, UpsertReport
)

from .reconciliation import (
    SyncPlan, reconcile
)

from .orchestrator import (
    SyncOrchestrator, SyncSummary, run_sync
)

__all__ = [
    # Configuration
    'IndexerConfig',
    'CollectionConfig',
    'load_site_config',

    # Identifiers
    'IdStrategy',
    'generate_id',
    'normalize',

    # Sources
    'DocumentSource',
    'Collection',
    'SourceItem',
    'ChangedFile',
    'InMemorySource',
    'SiteDirectorySource',

    # Documents
    'Document',
    'DocumentBuilder',

    # Remote index
    'RemoteIndexClient',
    'RemoteDocument',
    'UpsertReport',

    # Reconciliation and orchestration
    'SyncPlan',
    'reconcile',
    'SyncOrchestrator',
    'SyncSummary',
    'run_sync',
]
