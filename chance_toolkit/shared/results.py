"""
Per-draw outcomes and the batch tally for `audit_history`.

A draw that cannot be checked becomes a failed Result carrying the reason,
so one bad draw never hides the rest of the batch.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorSeverity(Enum):
    WARNING = "warning"  # draw not auditable yet
    ERROR = "error"  # beacon or input problem
    CRITICAL = "critical"  # integrity violation


@dataclass
class ProcessingError:
    """
    Why one draw could not be audited.

    Attributes:
        source: Stage that failed ("draw_audit", "beacon_source", ...)
        message: Text shown to the operator
        severity: Drives the exit code of a batch audit
        context: Draw id, epoch and round where known
        exception: The exception that was caught, if any
    """

    source: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


@dataclass
class Result(Generic[T]):
    """Either the audit of one draw, or the errors that prevented it."""

    success: bool
    data: Optional[T] = None
    errors: List[ProcessingError] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ProcessingError) -> "Result[T]":
        return cls(success=False, errors=[error])

    @classmethod
    def fail_with_message(
        cls,
        source: str,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        exception: Optional[Exception] = None,
    ) -> "Result[T]":
        return cls.fail(
            ProcessingError(
                source=source,
                message=message,
                severity=severity,
                context=context or {},
                exception=exception,
            )
        )

    def unwrap(self) -> T:
        """
        Return the audit, or raise what stopped it.

        The first captured exception is re-raised as the same object, so a
        CommitMismatch from a batch reaches the caller unchanged. Failures
        with no exception attached raise RuntimeError with the messages.
        """
        if self.success:
            return self.data
        for error in self.errors:
            if error.exception is not None:
                raise error.exception
        raise RuntimeError("; ".join(self.get_error_messages()) or "failed")

    def get_error_messages(self) -> List[str]:
        return [e.message for e in self.errors]


@dataclass
class AuditSummary:
    """
    Tally of a draw history audit.

    Verified, mismatched and failed draws count as audited. Pending and
    expired draws are reported but never audited.
    """

    draws_verified: int = 0
    draws_mismatched: int = 0
    draws_failed: int = 0
    draws_pending: int = 0
    draws_expired: int = 0

    errors: List[ProcessingError] = field(default_factory=list)
    mismatched_draws: List[int] = field(default_factory=list)
    failed_draws: List[int] = field(default_factory=list)
    expired_draws: List[int] = field(default_factory=list)

    def has_critical_errors(self) -> bool:
        return any(e.severity == ErrorSeverity.CRITICAL for e in self.errors)

    def error_count(self) -> int:
        return sum(1 for e in self.errors if e.severity != ErrorSeverity.WARNING)

    def warning_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == ErrorSeverity.WARNING)

    @property
    def draws_audited(self) -> int:
        return self.draws_verified + self.draws_mismatched + self.draws_failed

    def _calculate_rate(self, success: int, total: int) -> str:
        if total == 0:
            return "N/A"
        return f"{success}/{total}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success_rate": self._calculate_rate(
                self.draws_verified, self.draws_audited
            ),
            "counts": {
                "draws_verified": self.draws_verified,
                "draws_mismatched": self.draws_mismatched,
                "draws_failed": self.draws_failed,
                "draws_pending": self.draws_pending,
                "draws_expired": self.draws_expired,
            },
            "error_count": self.error_count(),
            "warning_count": self.warning_count(),
            "errors": [e.to_dict() for e in self.errors],
            "mismatched_draws": self.mismatched_draws,
            "failed_draws": self.failed_draws,
            "expired_draws": self.expired_draws,
        }
