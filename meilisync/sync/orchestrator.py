"""
Sync Orchestration

Runs one sync of a site's collections into the remote index:
- Environment and change-detection gates
- Configuration validation
- Document building
- Reconciliation against the documents already stored remotely
- Full reindex when the remote state cannot be read

A run never raises. Every failure is logged, recorded in the run's
ErrorTracker and reflected in the returned SyncSummary, so the site build
that triggered the sync is never failed by indexing.
"""

import time
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from ..config import DEFAULT_ENVIRONMENT, current_environment, is_development
from .config import DEFAULT_INDEX_NAME, IndexerConfig
from .document_builder import DocumentBuilder
from .error_tracker import ConfigurationError, ErrorCategory, ErrorSeverity, ErrorTracker
from .logging_manager import LoggingManager, get_logger
from .reconciliation import SyncPlan, reconcile
from .remote_index import RemoteIndexClient, UpsertReport
from .resilience import Failure
from .source import DocumentSource

logger = get_logger(__name__)


@dataclass
class SyncSummary:
    """Summary of a sync run."""
    status: str  # skipped, aborted, planned, synced, reindexed, partial, failed
    index_name: str
    environment: str
    documents_built: int = 0
    documents_deleted: int = 0
    upsert: Optional[UpsertReport] = None
    processing_time: float = 0.0
    plan: Optional[SyncPlan] = None
    errors: Dict[str, Any] = field(default_factory=dict)


class SyncOrchestrator:
    """
    Coordinates a single sync run.

    1. Skip when disabled in development or when no indexed collection changed
    2. Validate url and api_key
    3. Build the local documents
    4. Ensure the index exists and fetch the stored documents
    5. Delete obsolete documents and upsert the local set, or wipe and
       reindex everything if the stored documents could not be fetched
    """

    def __init__(self, config: IndexerConfig, source: DocumentSource, environment: str = DEFAULT_ENVIRONMENT,
                 client: Optional[RemoteIndexClient] = None, builder: Optional[DocumentBuilder] = None,
                 dry_run: bool = False):
        """
        Args:
            config: Indexer configuration, parsed once for this run
            source: Collections to index
            environment: Build environment (development, staging, production)
            client: Index client; created from the config when omitted
            builder: Document builder
            dry_run: Compute and log the plan without writing to the index
        """
        self.config = config
        self.source = source
        self.environment = environment
        self.dry_run = dry_run
        self.builder = builder or DocumentBuilder()
        self._client = client

        self.logging_manager = LoggingManager(log_level=config.log_level, log_file=config.log_file)
        self.error_tracker = ErrorTracker()
        self.logger = self.logging_manager.get_logger(__name__)

        self.sync_start_time: Optional[float] = None
        self.documents_built = 0

    @property
    def index_name(self) -> str:
        return self.config.index_name

    def run(self) -> SyncSummary:
        self.sync_start_time = time.time()

        if self._disabled_in_development():
            self.logger.info("Skipping meilisearch indexation in development")
            return self._summary('skipped')
        try:
            if not self._has_relevant_changes():
                return self._summary('skipped')
        except Exception as e:
            return self._unexpected_failure(f"Change detection failed: {e}", e)

        self.logger.info("Starting Meilisearch incremental indexing...")
        try:
            self.config.ensure_credentials()
        except ConfigurationError as e:
            self.error_tracker.report_exception(e, severity=ErrorSeverity.CRITICAL)
            self.logger.error(f"Error: {e.message}", extra={'details': {'recovery_suggestion': e.recovery_suggestion}})
            return self._summary('aborted')

        try:
            return self._sync()
        except Exception as e:
            return self._unexpected_failure(f"Sync operation failed: {e}", e)

    def _unexpected_failure(self, error_msg: str, exc: Exception) -> SyncSummary:
        self.error_tracker.report(error_msg, category=ErrorCategory.UNEXPECTED_INTERNAL,
                                  severity=ErrorSeverity.CRITICAL, index_name=self.index_name,
                                  details={'exception': str(exc)})
        self.logger.error(error_msg, exc_info=True, extra={'details': {'exception': str(exc)}})
        return self._summary('failed')

    def _disabled_in_development(self) -> bool:
        return self.config.disable_in_development and is_development(self.environment)

    def _has_relevant_changes(self) -> bool:
        """Without change information the run always proceeds."""
        has_change_info = getattr(self.source, 'has_incremental_change_info', None)
        if not callable(has_change_info) or not has_change_info():
            return True

        changed = list(self.source.changed_files())
        if not changed:
            self.logger.info("No files changed since the last build. Skipping indexing.")
            return False

        names = set(self.config.collections)
        for changed_file in changed:
            parts = PurePosixPath(changed_file.relative_path.replace('\\', '/')).parts
            if any(part in names or (part.startswith('_') and part[1:] in names) for part in parts):
                return True

        self.logger.info(f"None of the {len(changed)} changed files belong to an indexed collection. Skipping indexing.")
        return False

    def _client_for_run(self) -> RemoteIndexClient:
        if self._client is None:
            self._client = RemoteIndexClient(self.config, error_tracker=self.error_tracker)
        return self._client

    def _sync(self) -> SyncSummary:
        documents = self.builder.build(self.config.collections, self.source)
        self.documents_built = len(documents)
        client = self._client_for_run()

        if not self.dry_run:
            client.ensure_index(self.index_name)

        remote = client.fetch_all(self.index_name)
        if isinstance(remote, Failure):
            if self.dry_run:
                self.logger.info("Failed to fetch existing documents. A real run would fall back to full indexing.")
                return self._summary('planned')
            self.logger.info("Failed to fetch existing documents. Falling back to full indexing.")
            return self._full_reindex(client, documents)

        plan = reconcile(documents, remote)
        if self.dry_run:
            return self._summary('planned', plan=plan)

        deleted = client.delete_batch(self.index_name, plan.to_delete)
        upsert = client.upsert_batch(self.index_name, plan.to_upsert) if plan.to_upsert else None

        status = 'synced'
        if not deleted or (upsert is not None and not upsert.fully_accepted):
            status = 'partial'
        self.logger.info(f"Sync finished with status '{status}'")
        return self._summary(status, plan=plan, documents_deleted=len(plan.to_delete) if deleted else 0, upsert=upsert)

    def _full_reindex(self, client: RemoteIndexClient, documents) -> SyncSummary:
        self.logger.info("Performing full index reset as fallback...")
        if not client.wipe_all(self.index_name):
            self.logger.error("Full reindex abandoned: the index could not be reset.")
            return self._summary('failed')

        upsert = client.upsert_batch(self.index_name, documents) if documents else None
        status = 'reindexed' if upsert is None or upsert.fully_accepted else 'partial'
        return self._summary(status, upsert=upsert)

    def _summary(self, status: str, plan: Optional[SyncPlan] = None, documents_deleted: int = 0,
                 upsert: Optional[UpsertReport] = None) -> SyncSummary:
        elapsed = time.time() - self.sync_start_time if self.sync_start_time else 0.0
        return SyncSummary(
            status=status,
            index_name=self.index_name,
            environment=self.environment,
            documents_built=self.documents_built,
            documents_deleted=documents_deleted,
            upsert=upsert,
            processing_time=elapsed,
            plan=plan,
            errors=self.error_tracker.generate_report(),
        )


def run_sync(site_config: Optional[Mapping[str, Any]], source: DocumentSource, environment: Optional[str] = None,
             client: Optional[RemoteIndexClient] = None, dry_run: bool = False) -> SyncSummary:
    """
    Parse the ``meilisearch`` section of ``site_config`` and run one sync.

    Invalid settings end the run with status 'aborted'.
    """
    environment = environment or current_environment()
    try:
        config = IndexerConfig.from_site_config(site_config)
    except (ValidationError, ConfigurationError) as e:
        tracker = ErrorTracker()
        tracker.report(f"Invalid meilisearch configuration: {e}", category=ErrorCategory.CONFIG_INVALID,
                       severity=ErrorSeverity.CRITICAL)
        logger.error(f"Invalid meilisearch configuration. Skipping indexing: {e}")
        return SyncSummary(status='aborted', index_name=DEFAULT_INDEX_NAME, environment=environment,
                           errors=tracker.generate_report())

    orchestrator = SyncOrchestrator(config, source, environment=environment, client=client, dry_run=dry_run)
    return orchestrator.run()
