"""
Duplicate grouping over a collection of named records.

Every unordered pair inside a partition is scored with similarity(); pairs
at or above the threshold are edges, and groups are the connected
components of that graph (union-find). A chain A~B~C lands in one group
even when A and C alone would not match. A record whose key is empty
(blank or punctuation-only name) matches nothing. Exact key equality is the
score == 1.0 special case, so the old "same name + same city" vendor
grouping falls out of partition=city. Two entries carrying the same id are
one record and are never paired with each other.

Read-only over its input. Group members keep input order and groups are
ordered by their first member, so identical input gives identical output.
"""

import logging
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from services.api.dedup.similarity import (
    business_key,
    normalize,
    similarity,
    similarity_upper_bound,
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.9


@dataclass
class DuplicateGroup:
    """Two or more records that look like the same real-world entity."""
    name: str
    partition_key: Optional[Hashable]
    members: list[Any] = field(default_factory=list)
    min_score: float = 1.0
    max_score: float = 0.0

    @property
    def count(self) -> int:
        return len(self.members)


class _UnionFind:
    """Disjoint sets over 0..n-1; the lowest index is always the root."""

    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        if ra < rb:
            self.parent[rb] = ra
        else:
            self.parent[ra] = rb


def find_duplicates(
    entities: Iterable[Any],
    threshold: float = DEFAULT_THRESHOLD,
    key: Callable[[str], str] = business_key,
    partition: Optional[Callable[[Any], Hashable]] = None,
) -> list[DuplicateGroup]:
    """
    Group records whose names match at or above `threshold`.

    Args:
        entities: objects exposing `.name` (and usually `.id`).
        threshold: minimum similarity for an edge, inclusive.
        key: name -> comparison key. Defaults to business_key; pass
             normalize for person names.
        partition: record -> secondary key. Records are only compared
             within the same partition (vendors: city, guests: wedding).

    Returns:
        Groups of size >= 2.

    Raises:
        ValueError: a record has no name.
    """
    items = list(entities)
    keys: list[str] = []
    for item in items:
        name = getattr(item, "name", None)
        if name is None:
            raise ValueError(f"Record {getattr(item, 'id', '?')!r} has no name")
        keys.append(normalize(key(name)))

    ids = [getattr(item, "id", None) for item in items]
    part_keys = [partition(item) if partition else None for item in items]
    buckets: dict[Hashable, list[int]] = {}
    for index, part in enumerate(part_keys):
        buckets.setdefault(part, []).append(index)

    uf = _UnionFind(len(items))
    edges: list[tuple[int, int, float]] = []
    compared = 0

    for indices in buckets.values():
        for pos, i in enumerate(indices):
            len_i = len(keys[i])
            if not len_i:
                continue
            for j in indices[pos + 1:]:
                if not keys[j]:
                    continue
                if ids[i] is not None and ids[i] == ids[j]:
                    continue
                if similarity_upper_bound(len_i, len(keys[j])) < threshold:
                    continue
                compared += 1
                score = similarity(keys[i], keys[j])
                if score >= threshold:
                    uf.union(i, j)
                    edges.append((i, j, score))

    components: dict[int, list[int]] = {}
    for index in range(len(items)):
        components.setdefault(uf.find(index), []).append(index)

    groups: dict[int, DuplicateGroup] = {}
    for root in sorted(components):
        member_indices = components[root]
        if len(member_indices) < 2:
            continue
        groups[root] = DuplicateGroup(
            name=items[root].name,
            partition_key=part_keys[root],
            members=[items[i] for i in member_indices],
        )

    for i, _, score in edges:
        group = groups[uf.find(i)]
        group.min_score = min(group.min_score, score)
        group.max_score = max(group.max_score, score)

    logger.debug(
        "Duplicate scan: %d records, %d partitions, %d pairs scored, %d groups",
        len(items),
        len(buckets),
        compared,
        len(groups),
    )
    return list(groups.values())
