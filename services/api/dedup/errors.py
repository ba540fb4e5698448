"""
Structured errors for duplicate detection and merging.

Each carries the HTTP status and machine-readable code the exception
handler in main.py renders. A failed merge never leaves partial state, so
every merge error is safe to retry once its cause is fixed.
"""

from typing import Any, Optional


class DedupError(Exception):
    status_code = 500
    code = "DEDUP_ERROR"
    retryable = False

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


class MergeValidationError(DedupError):
    status_code = 422
    code = "MERGE_INVALID"


class ConflictError(DedupError):
    """The keeper is also listed for removal."""
    status_code = 409
    code = "MERGE_CONFLICT"


class NotFoundError(DedupError):
    status_code = 404
    code = "NOT_FOUND"


class MergeTransactionError(DedupError):
    """A statement inside the merge transaction failed; everything was rolled back."""
    status_code = 500
    code = "MERGE_FAILED"
    retryable = True


class TooManyRecordsError(DedupError):
    status_code = 413
    code = "TOO_MANY_RECORDS"
