"""Duplicate detection, keeper ranking and transactional merge."""

from services.api.dedup.detector import DEFAULT_THRESHOLD, DuplicateGroup, find_duplicates
from services.api.dedup.errors import (
    ConflictError,
    DedupError,
    MergeTransactionError,
    MergeValidationError,
    NotFoundError,
    TooManyRecordsError,
)
from services.api.dedup.merge import MergeExecutor, MergeResult
from services.api.dedup.ranker import KeeperCandidate, rank, select_keeper
from services.api.dedup.similarity import business_key, levenshtein, normalize, similarity

__all__ = [
    "DEFAULT_THRESHOLD",
    "DuplicateGroup",
    "find_duplicates",
    "ConflictError",
    "DedupError",
    "MergeTransactionError",
    "MergeValidationError",
    "NotFoundError",
    "TooManyRecordsError",
    "MergeExecutor",
    "MergeResult",
    "KeeperCandidate",
    "rank",
    "select_keeper",
    "business_key",
    "levenshtein",
    "normalize",
    "similarity",
]
