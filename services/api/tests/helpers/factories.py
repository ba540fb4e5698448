"""
Factory functions for test records and scripted session results.

Usage:
    from services.api.tests.helpers.factories import make_vendor, queue_merge
"""

import uuid
from datetime import datetime, timedelta
from typing import Any, Optional

from services.api.db.models import Guest, Household, Vendor
from services.api.dedup.targets import MergeTarget
from services.api.tests.helpers.mock_sa import MockSASession

_BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


def make_id() -> str:
    return str(uuid.uuid4())


def make_vendor(**overrides: Any) -> Vendor:
    """Transient Vendor row. Unclaimed ghost profile unless told otherwise."""
    fields = {
        "id": make_id(),
        "user_id": None,
        "name": "Test Vendor",
        "slug": None,
        "category": "photographer",
        "categories": ["photographer"],
        "location": "Fremont, CA",
        "city": "San Francisco Bay Area",
        "description": None,
        "email": None,
        "phone": None,
        "website": None,
        "claimed": False,
        "verified": False,
        "source": "google_places",
        "view_count": 0,
        "created_at": _BASE_TIME,
    }
    fields.update(overrides)
    return Vendor(**fields)


def make_vendors(*names: str, **common: Any) -> list[Vendor]:
    """One vendor per name, created a minute apart in argument order."""
    return [
        make_vendor(name=name, created_at=_BASE_TIME + timedelta(minutes=i), **common)
        for i, name in enumerate(names)
    ]


def make_guest(**overrides: Any) -> Guest:
    fields = {
        "id": make_id(),
        "wedding_id": "wedding-1",
        "household_id": None,
        "name": "Test Guest",
        "email": None,
        "phone": None,
        "side": "mutual",
    }
    fields.update(overrides)
    return Guest(**fields)


def make_household(**overrides: Any) -> Household:
    fields = {
        "id": make_id(),
        "wedding_id": "wedding-1",
        "name": "The Test Family",
        "contact_email": None,
        "max_count": 2,
        "affiliation": "bride",
        "relationship_tier": "friend",
        "created_at": _BASE_TIME,
    }
    fields.update(overrides)
    return Household(**fields)


# ---------------------------------------------------------------------------
# Scripted session results
# ---------------------------------------------------------------------------

def queue_usage(
    session: MockSASession,
    target: MergeTarget,
    usage: dict[str, dict[str, int]],
) -> MockSASession:
    """Script the grouped COUNT per reference table that count_usage() issues."""
    for ref in target.references:
        rows = [
            (entity_id, counts[ref.name])
            for entity_id, counts in usage.items()
            if counts.get(ref.name)
        ]
        session.returns_rows(rows)
    return session


def queue_merge(
    session: MockSASession,
    target: MergeTarget,
    keep_id: str,
    remove_ids: list[str],
    *,
    found: Optional[list[str]] = None,
    moved: Optional[dict[str, int]] = None,
    dropped: Optional[dict[str, int]] = None,
    deleted: Optional[int] = None,
) -> MockSASession:
    """
    Script every statement MergeExecutor.merge() issues, in order:
    lock, one UPDATE per reference (unique references: one UPDATE per
    removed id then a DELETE of leftovers), then the DELETE of the removed rows.
    """
    removed = list(dict.fromkeys(remove_ids))
    moved = moved or {}
    dropped = dropped or {}

    session.returns_many(found if found is not None else [keep_id, *removed])
    for ref in target.references:
        if ref.unique_with:
            for i, _ in enumerate(removed):
                session.returns_rowcount(moved.get(ref.name, 0) if i == 0 else 0)
            session.returns_rowcount(dropped.get(ref.name, 0))
        else:
            session.returns_rowcount(moved.get(ref.name, 0))
    session.returns_rowcount(len(removed) if deleted is None else deleted)
    return session


def merge_statement_count(target: MergeTarget, removed: int) -> int:
    """How many execute() calls a successful merge of `removed` ids makes."""
    count = 2  # lock + delete
    for ref in target.references:
        count += removed + 1 if ref.unique_with else 1
    return count
