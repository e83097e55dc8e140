"""
Centralized Error Tracking and Reporting for the Sync Module.

Nothing raised during a sync run is allowed to fail the surrounding site
build, so failures are recorded here instead and surfaced in the run summary.

Key Features:
- Error Categories: Every recorded error names what went wrong
  (invalid configuration, transport failure, rejected request, unknown
  remote state, unexpected internal error).
- Custom Exception Classes: ``ConfigurationError`` for settings that make a
  run impossible.
- ErrorTracker: Aggregates the errors of a single run into a report.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any

class ErrorSeverity(Enum):
    """
    Defines the severity of an error.
    """
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class ErrorCategory(Enum):
    """
    What kind of failure was recorded.
    """
    CONFIG_INVALID = "config_invalid"
    TRANSPORT_FAILURE = "transport_failure"
    REMOTE_STATE_UNKNOWN = "remote_state_unknown"
    REMOTE_REJECTED = "remote_rejected"
    UNEXPECTED_INTERNAL = "unexpected_internal"

@dataclass
class SyncError:
    """
    A structured object representing a single error that occurred during a sync run.
    """
    message: str
    category: ErrorCategory = ErrorCategory.UNEXPECTED_INTERNAL
    severity: ErrorSeverity = ErrorSeverity.ERROR
    index_name: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    recovery_suggestion: Optional[str] = None

    def to_dict(self):
        return {
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "index_name": self.index_name,
            "details": self.details,
            "recovery_suggestion": self.recovery_suggestion
        }

# Custom Exception Classes
class SyncException(Exception):
    """Base class for all custom sync exceptions."""
    category = ErrorCategory.UNEXPECTED_INTERNAL

    def __init__(self, message: str, index_name: Optional[str] = None, recovery_suggestion: Optional[str] = None):
        self.message = message
        self.index_name = index_name
        self.recovery_suggestion = recovery_suggestion
        super().__init__(self.message)

class ConfigurationError(SyncException):
    """Indicates missing or invalid settings in the meilisearch config section."""
    category = ErrorCategory.CONFIG_INVALID


class ErrorTracker:
    """
    A centralized tracker for aggregating errors during a sync run.
    """
    def __init__(self):
        self.errors: List[SyncError] = []

    def report(self, message: str, category: ErrorCategory = ErrorCategory.UNEXPECTED_INTERNAL, severity: ErrorSeverity = ErrorSeverity.ERROR, index_name: Optional[str] = None, details: Optional[Dict[str, Any]] = None, recovery_suggestion: Optional[str] = None):
        """
        Report a new error.
        """
        error = SyncError(
            message=message,
            category=category,
            severity=severity,
            index_name=index_name,
            details=details or {},
            recovery_suggestion=recovery_suggestion
        )
        self.errors.append(error)

    def report_exception(self, exc: SyncException, severity: ErrorSeverity = ErrorSeverity.ERROR):
        """
        Report an error from a SyncException.
        """
        self.report(
            message=exc.message,
            category=exc.category,
            severity=severity,
            index_name=exc.index_name,
            recovery_suggestion=exc.recovery_suggestion
        )

    def get_errors(self, min_severity: ErrorSeverity = ErrorSeverity.WARNING) -> List[SyncError]:
        """
        Get all errors at or above a certain severity level.
        """
        severity_map = {
            ErrorSeverity.WARNING: 1,
            ErrorSeverity.ERROR: 2,
            ErrorSeverity.CRITICAL: 3
        }
        min_level = severity_map.get(min_severity, 1)
        return [e for e in self.errors if severity_map.get(e.severity, 1) >= min_level]

    def get_errors_by_category(self, category: ErrorCategory) -> List[SyncError]:
        return [e for e in self.errors if e.category == category]

    def has_critical_errors(self) -> bool:
        """
        Check if any critical errors have been reported.
        """
        return any(e.severity == ErrorSeverity.CRITICAL for e in self.errors)

    def generate_report(self) -> Dict[str, Any]:
        """
        Generate a summary report of all errors.
        """
        report = {
            "total_errors": len(self.errors),
            "critical_count": len(self.get_errors(ErrorSeverity.CRITICAL)),
            "error_count": len(self.get_errors(ErrorSeverity.ERROR)) - len(self.get_errors(ErrorSeverity.CRITICAL)),
            "warning_count": len(self.get_errors(ErrorSeverity.WARNING)) - len(self.get_errors(ErrorSeverity.ERROR)),
            "errors": [e.to_dict() for e in self.errors]
        }
        return report
