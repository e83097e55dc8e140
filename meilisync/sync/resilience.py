"""
Resilience utilities: bounded retry with exponential backoff for index requests.

Every call made against the remote index goes through ``attempt_request``,
which never raises for network trouble. It returns either the response or a
``Failure`` sentinel describing why no acceptable response was obtained.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, Union

import requests

from .error_tracker import ErrorCategory
from .logging_manager import get_logger

logger = get_logger(__name__)

# Statuses that end the retry loop without being 2xx
ACCEPTED_STATUS = 202
NOT_FOUND_STATUS = 404


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    retry_on_exceptions: Tuple[Type[BaseException], ...] = (requests.RequestException,)

    def compute_backoff(self, attempt_index_zero_based: int) -> float:
        return self.base_delay_seconds * (2 ** attempt_index_zero_based)


@dataclass
class Failure:
    """Sentinel returned when a request produced no acceptable response."""
    action: str
    attempts: int
    kind: ErrorCategory = ErrorCategory.TRANSPORT_FAILURE
    status_code: Optional[int] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return False

    def describe(self) -> str:
        if self.status_code is not None:
            return f"{self.action} rejected with status {self.status_code} after {self.attempts} attempts"
        if self.error:
            return f"{self.action} failed after {self.attempts} attempts: {self.error}"
        return f"{self.action} failed after {self.attempts} attempts"


RequestResult = Union[requests.Response, Failure]


def is_acceptable(response: requests.Response) -> bool:
    return is_success(response.status_code) or response.status_code in (ACCEPTED_STATUS, NOT_FOUND_STATUS)


def attempt_request(request: Callable[[], requests.Response], action: str, policy: Optional[RetryPolicy] = None) -> RequestResult:
    """
    Execute ``request`` under the retry policy.

    - A 2xx, 202 or 404 response is returned as soon as it is received.
    - Any other status is retried straight away; if every attempt is rejected the
      result is a ``Failure`` carrying the last status code.
    - A transport error (connection error, timeout) sleeps
      ``base_delay * 2**attempt`` seconds before the next attempt; if every
      attempt fails this way the result is a ``Failure`` carrying the error.
    """
    policy = policy or RetryPolicy()
    last_status: Optional[int] = None
    last_error: Optional[str] = None

    for attempt in range(policy.max_attempts):
        try:
            response = request()
        except policy.retry_on_exceptions as exc:
            last_error = str(exc)
            last_status = None
            logger.warning(f"Attempt {attempt + 1} failed while {action}: {exc}")
            time.sleep(policy.compute_backoff(attempt))
            continue

        if is_acceptable(response):
            return response
        last_status = response.status_code
        last_error = None
        logger.warning(f"Attempt {attempt + 1} while {action} returned status {response.status_code}")

    logger.error(f"All retries failed for {action}.")
    if last_status is not None:
        return Failure(action=action, attempts=policy.max_attempts, kind=ErrorCategory.REMOTE_REJECTED, status_code=last_status)
    return Failure(action=action, attempts=policy.max_attempts, kind=ErrorCategory.TRANSPORT_FAILURE, error=last_error)
