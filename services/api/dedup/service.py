"""
Duplicate report, merge and auto-clean for one entity kind.

Usage:
    service = DuplicateService(session, VENDOR_TARGET)
    groups = await service.report(threshold=0.9)
    result = await service.merge(keep_id, remove_ids)
    stats = await service.auto_clean(threshold=0.9)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.api.config import settings
from services.api.dedup.detector import DuplicateGroup, find_duplicates
from services.api.dedup.errors import DedupError, TooManyRecordsError
from services.api.dedup.merge import MergeExecutor, MergeResult
from services.api.dedup.ranker import KeeperCandidate, rank
from services.api.dedup.targets import MergeTarget
from services.api.dedup.usage import count_usage

logger = logging.getLogger(__name__)


@dataclass
class RankedGroup:
    """A duplicate group with members in keeper order."""
    group: DuplicateGroup
    ranked: list[KeeperCandidate]

    @property
    def suggested_keep_id(self) -> str:
        return self.ranked[0].id

    @property
    def extra_copies(self) -> int:
        return len(self.ranked) - 1


@dataclass
class AutoCleanResult:
    """Aggregate outcome of an auto-clean run."""
    groups_found: int = 0
    groups_cleaned: int = 0
    total_deleted: int = 0
    reassigned_relation_count: int = 0
    dropped_relation_count: int = 0
    errors: int = 0
    merges: list[MergeResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "groupsFound": self.groups_found,
            "groupsCleaned": self.groups_cleaned,
            "totalDeleted": self.total_deleted,
            "reassignedRelationCount": self.reassigned_relation_count,
            "droppedRelationCount": self.dropped_relation_count,
            "errors": self.errors,
        }


class DuplicateService:
    def __init__(
        self,
        session: AsyncSession,
        target: MergeTarget,
        max_records: Optional[int] = None,
    ):
        self.session = session
        self.target = target
        self.max_records = max_records if max_records is not None else settings.dedup_max_entities

    async def report(
        self,
        threshold: float,
        filters: Sequence[Any] = (),
    ) -> list[RankedGroup]:
        """Detect duplicate groups among rows matching `filters` and rank each one."""
        model = self.target.model
        rows = await self.session.execute(
            select(model)
            .where(*filters)
            .order_by(*self.target.order_by)
            .limit(self.max_records + 1)
        )
        records = list(rows.scalars().all())
        if len(records) > self.max_records:
            raise TooManyRecordsError(
                f"More than {self.max_records} {self.target.entity}s to scan for duplicates; narrow the filter",
                {"limit": self.max_records},
            )

        groups = find_duplicates(
            records,
            threshold=threshold,
            key=self.target.name_key,
            partition=self.target.partition,
        )
        if not groups:
            return []

        grouped_ids = [record.id for group in groups for record in group.members]
        usage = await count_usage(self.session, self.target, grouped_ids)

        ranked_groups = []
        for group in groups:
            candidates = [
                self.target.to_candidate(record, usage[record.id])
                for record in group.members
            ]
            ranked_groups.append(RankedGroup(group=group, ranked=rank(candidates)))

        logger.info(
            "%s duplicate report: %d records, %d groups, %d extra copies",
            self.target.entity,
            len(records),
            len(ranked_groups),
            sum(g.extra_copies for g in ranked_groups),
        )
        return ranked_groups

    async def merge(
        self,
        keep_id: str,
        remove_ids: Sequence[str],
        scope: Sequence[Any] = (),
    ) -> MergeResult:
        return await MergeExecutor(self.session, self.target).merge(keep_id, remove_ids, scope)

    async def auto_clean(
        self,
        threshold: float,
        filters: Sequence[Any] = (),
        scope: Sequence[Any] = (),
    ) -> AutoCleanResult:
        """
        Merge every detected group into its top-ranked member.

        Each group is its own transaction; a failed group is rolled back,
        counted in `errors`, and the run moves on.
        """
        stats = AutoCleanResult()
        groups = await self.report(threshold, filters)
        stats.groups_found = len(groups)

        for ranked_group in groups:
            keep_id = ranked_group.suggested_keep_id
            remove_ids = [c.id for c in ranked_group.ranked[1:]]
            try:
                result = await self.merge(keep_id, remove_ids, scope)
            except DedupError:
                stats.errors += 1
                logger.exception(
                    "Auto-clean merge failed for %s group %r (keeper %s)",
                    self.target.entity,
                    ranked_group.group.name,
                    keep_id[:8],
                )
                continue

            stats.groups_cleaned += 1
            stats.total_deleted += result.deleted_count
            stats.reassigned_relation_count += result.reassigned_relation_count
            stats.dropped_relation_count += result.dropped_relation_count
            stats.merges.append(result)

        logger.info(
            "%s auto-clean: %d/%d groups cleaned, %d deleted, %d errors",
            self.target.entity,
            stats.groups_cleaned,
            stats.groups_found,
            stats.total_deleted,
            stats.errors,
        )
        return stats
