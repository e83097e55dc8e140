"""
HTTP client for the remote search index.

Wraps the index API calls used by a sync run. Every call goes through
``attempt_request`` so that network trouble ends up as a logged ``Failure``
rather than an exception, and the site build carries on.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import requests

from .config import IndexerConfig
from .document_builder import Document
from .error_tracker import ErrorCategory, ErrorSeverity, ErrorTracker
from .logging_manager import get_logger
from .resilience import ACCEPTED_STATUS, NOT_FOUND_STATUS, Failure, RetryPolicy, attempt_request, is_success

logger = get_logger(__name__)

PAGE_SIZE = 1000
BATCH_SIZE = 1000


@dataclass
class RemoteDocument:
    """What the index reports for a stored document. Only the id is compared."""
    id: str
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RemoteDocument':
        data = dict(data)
        doc_id = data.pop('id')
        return cls(id=str(doc_id), fields=data)


@dataclass
class UpsertReport:
    """Aggregate outcome of an upsert over all chunks."""
    total_documents: int = 0
    chunks_sent: int = 0
    chunks_accepted: int = 0
    chunks_failed: int = 0
    task_uids: List[int] = field(default_factory=list)

    @property
    def fully_accepted(self) -> bool:
        return self.chunks_failed == 0


def chunked(items: Sequence, size: int) -> Iterable[Sequence]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class RemoteIndexClient:
    """Client for one search service, configured from an IndexerConfig."""

    def __init__(self, config: IndexerConfig, session: Optional[requests.Session] = None,
                 retry_policy: Optional[RetryPolicy] = None, error_tracker: Optional[ErrorTracker] = None,
                 page_size: int = PAGE_SIZE, batch_size: int = BATCH_SIZE):
        self.base_url = config.url
        self.timeout = config.timeout
        self.session = session or requests.Session()
        self.session.headers.update(config.build_headers())
        self.retry_policy = retry_policy or RetryPolicy()
        self.error_tracker = error_tracker or ErrorTracker()
        self.page_size = page_size
        self.batch_size = batch_size

    def _request(self, method: str, path: str, action: str, body: Any = None, params: Optional[Dict[str, Any]] = None):
        url = f"{self.base_url}{path}"
        data = json.dumps(body) if body is not None else None
        return attempt_request(
            lambda: self.session.request(method, url, data=data, params=params, timeout=self.timeout),
            action,
            self.retry_policy,
        )

    def _report_failure(self, message: str, result: Union[requests.Response, Failure], index_name: str,
                        category: Optional[ErrorCategory] = None) -> None:
        if isinstance(result, Failure):
            details = {'action': result.action, 'attempts': result.attempts, 'status_code': result.status_code, 'error': result.error}
            category = category or result.kind
        else:
            details = {'status_code': result.status_code, 'body': str(result.text)[:500]}
            category = category or ErrorCategory.REMOTE_REJECTED
        logger.error(message, extra={'details': details})
        self.error_tracker.report(message, category=category, severity=ErrorSeverity.ERROR, index_name=index_name, details=details)

    def ensure_index(self, index_name: str) -> bool:
        """Create the index when the service reports it missing."""
        logger.info(f"Checking if index '{index_name}' exists...")
        response = self._request('GET', f"/indexes/{index_name}", "checking index")
        if isinstance(response, Failure):
            self._report_failure(f"Error checking index: {response.describe()}", response, index_name)
            return False
        if is_success(response.status_code):
            return True
        if response.status_code != NOT_FOUND_STATUS:
            self._report_failure(f"Error checking index: {response.status_code}", response, index_name)
            return False

        logger.info(f"Index '{index_name}' not found. Creating it...")
        response = self._request('POST', "/indexes", "creating index", body={'uid': index_name})
        if not isinstance(response, Failure) and is_success(response.status_code):
            logger.info(f"Index '{index_name}' created successfully.")
            return True
        self._report_failure(f"Failed to create index '{index_name}'", response, index_name)
        return False

    def fetch_all(self, index_name: str) -> Union[List[RemoteDocument], Failure]:
        """
        Page through every stored document.

        Returns a Failure when any page cannot be read, meaning the remote
        state is unknown, not that the index is empty.
        """
        documents: List[RemoteDocument] = []
        offset = 0
        while True:
            response = self._request(
                'GET', f"/indexes/{index_name}/documents", "fetching documents",
                params={'limit': self.page_size, 'offset': offset},
            )
            if isinstance(response, Failure):
                self._report_failure(f"Failed to fetch documents at offset {offset}: {response.describe()}",
                                     response, index_name, ErrorCategory.REMOTE_STATE_UNKNOWN)
                return response
            if not is_success(response.status_code):
                self._report_failure(f"Failed to fetch documents at offset {offset}: {response.status_code}",
                                     response, index_name, ErrorCategory.REMOTE_STATE_UNKNOWN)
                return Failure(action="fetching documents", attempts=1, kind=ErrorCategory.REMOTE_STATE_UNKNOWN,
                               status_code=response.status_code)
            try:
                results = response.json()['results']
                page = self._readable_documents(results, index_name, offset)
            except (ValueError, KeyError, TypeError) as e:
                self._report_failure(f"Unreadable documents page at offset {offset}: {e}",
                                     response, index_name, ErrorCategory.REMOTE_STATE_UNKNOWN)
                return Failure(action="fetching documents", attempts=1, kind=ErrorCategory.REMOTE_STATE_UNKNOWN,
                               error=str(e))

            documents.extend(page)
            if len(results) < self.page_size:
                break
            offset += self.page_size

        logger.info(f"Fetched {len(documents)} documents from index '{index_name}'")
        return documents

    def _readable_documents(self, results, index_name: str, offset: int) -> List[RemoteDocument]:
        """Documents without an id cannot be matched locally and are left alone."""
        page = []
        for result in results:
            if not isinstance(result, dict) or result.get('id') is None:
                logger.warning(f"Skipping stored document without an id in index '{index_name}' at offset {offset}",
                               extra={'details': {'document': str(result)[:200]}})
                continue
            page.append(RemoteDocument.from_dict(result))
        return page

    def delete_batch(self, index_name: str, ids: Iterable[str]) -> bool:
        ids = list(ids)
        if not ids:
            logger.info("No documents to delete from Meilisearch.")
            return True

        logger.info(f"Deleting {len(ids)} obsolete documents from Meilisearch...")
        response = self._request('POST', f"/indexes/{index_name}/documents/delete-batch", "deleting documents", body=ids)
        if not isinstance(response, Failure) and is_success(response.status_code):
            logger.info("Delete task queued successfully.")
            return True
        self._report_failure("Failed to delete obsolete documents", response, index_name)
        return False

    def upsert_batch(self, index_name: str, documents: Sequence[Document]) -> UpsertReport:
        """Send documents in order, one request per chunk; failed chunks do not stop the rest."""
        report = UpsertReport(total_documents=len(documents))
        logger.info(f"Indexing {len(documents)} documents to Meilisearch...")

        for batch in chunked(list(documents), self.batch_size):
            report.chunks_sent += 1
            response = self._request('POST', f"/indexes/{index_name}/documents", "indexing documents",
                                     body=[document.to_dict() for document in batch])
            if isinstance(response, Failure) or not is_success(response.status_code):
                report.chunks_failed += 1
                self._report_failure(f"Failed to queue indexing task for {len(batch)} documents", response, index_name)
                continue

            report.chunks_accepted += 1
            if response.status_code == ACCEPTED_STATUS:
                self._log_task(response, report)

        if report.chunks_failed:
            logger.warning(f"{report.chunks_failed} of {report.chunks_sent} indexing batches failed",
                           extra={'details': {'index_name': index_name, 'failed': report.chunks_failed}})
        return report

    def _log_task(self, response: requests.Response, report: UpsertReport) -> None:
        try:
            task_uid = response.json().get('taskUid')
        except ValueError:
            task_uid = None
        if task_uid is None:
            logger.info("Task queued (202), but no task uid received.")
            return
        report.task_uids.append(task_uid)
        logger.info(f"Task queued: UID {task_uid}. Check status at {self.base_url}/tasks/{task_uid}")

    def wipe_all(self, index_name: str) -> bool:
        """Delete every document of the index; a missing index counts as already empty."""
        response = self._request('DELETE', f"/indexes/{index_name}/documents", "resetting index")
        if not isinstance(response, Failure) and (is_success(response.status_code) or response.status_code == NOT_FOUND_STATUS):
            logger.info(f"All documents removed from index '{index_name}'.")
            return True
        self._report_failure("Failed to reset index", response, index_name)
        return False
