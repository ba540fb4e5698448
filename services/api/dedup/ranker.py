"""
Keeper selection for a duplicate group.

The keeper is the record that survives a merge. Ordering, first rule that
separates two records wins:
  1. verified or claimed
  2. higher total usage (bookings, reviews, contracts, ... summed)
  3. has an email
  4. has a website
  5. earlier position in the group
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence


@dataclass
class KeeperCandidate:
    """A group member plus the ranking inputs fetched for it."""
    id: str
    name: str
    verified: bool = False
    claimed: bool = False
    email: Optional[str] = None
    website: Optional[str] = None
    usage: dict[str, int] = field(default_factory=dict)
    record: Any = None

    @property
    def total_usage(self) -> int:
        return sum(self.usage.values())


def _present(value: Any) -> bool:
    return bool(value and str(value).strip())


def _sort_key(entity: Any, position: int) -> tuple:
    trusted = bool(getattr(entity, "verified", False)) or bool(getattr(entity, "claimed", False))
    return (
        not trusted,
        -(getattr(entity, "total_usage", 0) or 0),
        not _present(getattr(entity, "email", None)),
        not _present(getattr(entity, "website", None)),
        position,
    )


def rank(group: Sequence[Any]) -> list[Any]:
    """Full keeper ordering, best first. Callers may override rank[0]."""
    ordered = sorted(enumerate(group), key=lambda pair: _sort_key(pair[1], pair[0]))
    return [entity for _, entity in ordered]


def select_keeper(group: Sequence[Any]) -> Any:
    """The record a merge should keep by default."""
    if not group:
        raise ValueError("Cannot select a keeper from an empty group")
    return rank(group)[0]
