"""
Duplicate check for a guest import batch.

Each incoming row is scored against the wedding's existing guests and
against the other rows of the same batch. Evidence is additive:

    same email          +0.70
    same phone          +0.60   (digits only, last 10)
    name sim >= 0.95    +0.50
    name sim >= 0.80    +0.35

A pair at or above the threshold is reported with confidence capped at 1.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from services.api.dedup.similarity import similarity

DEFAULT_IMPORT_THRESHOLD = 0.4

EMAIL_WEIGHT = 0.7
PHONE_WEIGHT = 0.6
NAME_NEAR_IDENTICAL = (0.95, 0.5)
NAME_SIMILAR = (0.8, 0.35)

_NON_DIGIT_RE = re.compile(r"\D")


@dataclass
class ImportGuest:
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    household_name: Optional[str] = None


@dataclass
class DuplicateMatch:
    """An import row that looks like a guest already on the list."""
    import_index: int
    matched_guest_id: str
    matched_guest_name: str
    confidence: float
    match_reasons: list[str] = field(default_factory=list)


@dataclass
class IntraBatchDuplicate:
    """Two rows of the same import that look like one person."""
    index1: int
    index2: int
    confidence: float
    match_reasons: list[str] = field(default_factory=list)


@dataclass
class DuplicateCheckResult:
    duplicates_with_existing: list[DuplicateMatch] = field(default_factory=list)
    duplicates_in_batch: list[IntraBatchDuplicate] = field(default_factory=list)


def normalize_phone(phone: str) -> str:
    return _NON_DIGIT_RE.sub("", phone)[-10:]


def normalize_email(email: str) -> str:
    return email.lower().strip()


def _percent(score: float) -> int:
    return int(score * 100 + 0.5)


def score_pair(a: Any, b: Any) -> tuple[float, list[str]]:
    """Evidence score and human-readable reasons for two guest-like records."""
    score = 0.0
    reasons: list[str] = []

    email_a, email_b = getattr(a, "email", None), getattr(b, "email", None)
    if email_a and email_b and normalize_email(email_a) == normalize_email(email_b):
        score += EMAIL_WEIGHT
        reasons.append("Same email address")

    phone_a, phone_b = getattr(a, "phone", None), getattr(b, "phone", None)
    if phone_a and phone_b:
        digits_a, digits_b = normalize_phone(phone_a), normalize_phone(phone_b)
        if digits_a and digits_a == digits_b:
            score += PHONE_WEIGHT
            reasons.append("Same phone number")

    name_score = similarity(a.name, b.name)
    if name_score >= NAME_NEAR_IDENTICAL[0]:
        score += NAME_NEAR_IDENTICAL[1]
        reasons.append(f"Nearly identical names ({_percent(name_score)}%)")
    elif name_score >= NAME_SIMILAR[0]:
        score += NAME_SIMILAR[1]
        reasons.append(f"Similar names ({_percent(name_score)}%)")

    return score, reasons


def detect_import_duplicates(
    import_guests: Sequence[ImportGuest],
    existing_guests: Sequence[Any],
    threshold: float = DEFAULT_IMPORT_THRESHOLD,
) -> DuplicateCheckResult:
    """
    Flag likely duplicates before an import is committed.

    Both lists come back sorted by confidence, highest first; ties keep
    discovery order.
    """
    result = DuplicateCheckResult()

    for i, incoming in enumerate(import_guests):
        for existing in existing_guests:
            score, reasons = score_pair(incoming, existing)
            if score >= threshold:
                result.duplicates_with_existing.append(DuplicateMatch(
                    import_index=i,
                    matched_guest_id=existing.id,
                    matched_guest_name=existing.name,
                    confidence=min(score, 1.0),
                    match_reasons=reasons,
                ))

        for j in range(i + 1, len(import_guests)):
            score, reasons = score_pair(incoming, import_guests[j])
            if score >= threshold:
                result.duplicates_in_batch.append(IntraBatchDuplicate(
                    index1=i,
                    index2=j,
                    confidence=min(score, 1.0),
                    match_reasons=reasons,
                ))

    result.duplicates_with_existing.sort(key=lambda m: -m.confidence)
    result.duplicates_in_batch.sort(key=lambda m: -m.confidence)
    return result
