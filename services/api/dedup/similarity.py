"""
Name similarity for duplicate detection.

Scores two names in [0, 1] from their Levenshtein edit distance after a
light normalization (lowercase, trim, collapse whitespace). Edit distance
comes from rapidfuzz.

business_key() is the stricter key the detector compares vendor names on:
trailing legal-form tokens ("Co", "LLC", "Inc.") and punctuation are
dropped, so "Elegant Events" and "Elegant Events Co" key identically while
similarity() on the raw names stays 0.82.
"""

import re
from typing import Optional

from rapidfuzz.distance import Levenshtein

_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace runs. None -> ""."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insert/delete/substitute, cost 1 each)."""
    return Levenshtein.distance(a, b)


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Similarity of two names in [0.0, 1.0].

    1.0 when the normalized strings are equal, 0.0 when either is empty,
    otherwise 1 - distance / max(len).
    """
    s1 = normalize(a)
    s2 = normalize(b)

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    return Levenshtein.normalized_similarity(s1, s2)


def similarity_upper_bound(len_a: int, len_b: int) -> float:
    """
    Best score two normalized strings of these lengths could reach.

    Edit distance is at least the length difference, so this bounds
    similarity() from above and lets callers skip hopeless pairs.
    """
    longest = max(len_a, len_b)
    if longest == 0:
        return 1.0
    return 1.0 - abs(len_a - len_b) / longest


# ---------------------------------------------------------------------------
# Business-name key
# ---------------------------------------------------------------------------

# Trailing tokens that name a legal form, not the business.
LEGAL_SUFFIXES = frozenset({
    "co", "company", "corp", "corporation",
    "inc", "incorporated",
    "llc", "llp", "lp", "pllc",
    "ltd", "limited",
})

_PUNCT_RE = re.compile(r"[.,'\"!?&()\-/]+")
# Dotted initialisms ("L.L.C.", "L.P.") are joined before punctuation goes.
_DOTTED_RE = re.compile(r"\b(?:[A-Za-z]\.)+[A-Za-z]\b\.?")


def business_key(name: Optional[str]) -> str:
    """
    Normalize a vendor name for comparison.

    "Elegant Events, Co." -> "elegant events"
    "Sahil & Sons LLC"    -> "sahil sons"

    Suffix tokens are stripped from the end only, repeatedly, and never
    down to an empty key ("Company" stays "company").
    """
    joined = _DOTTED_RE.sub(lambda m: m.group(0).replace(".", ""), name or "")
    text = normalize(_PUNCT_RE.sub(" ", joined))
    if not text:
        return ""

    tokens = text.split(" ")
    while len(tokens) > 1 and tokens[-1] in LEGAL_SUFFIXES:
        tokens.pop()
    return " ".join(tokens)
