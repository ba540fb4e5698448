"""
Merge executor: fold duplicate records into a keeper.

Merge protocol, one transaction:
  1. Lock keeper + removed rows (SELECT ... FOR UPDATE); all must exist
     and be inside the caller's scope
  2. Point every reference column at the keeper
     (unique references: move what doesn't collide, drop the rest)
  3. Delete the removed rows
  4. Commit

Any failure rolls the whole thing back; a partial merge is never visible.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.api.dedup.errors import (
    ConflictError,
    MergeTransactionError,
    MergeValidationError,
    NotFoundError,
)
from services.api.dedup.targets import MergeTarget, Reference

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of a single merge."""
    keep_id: str
    removed_ids: list[str]
    deleted_count: int = 0
    reassigned_relation_count: int = 0
    dropped_relation_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "keepId": self.keep_id,
            "removedIds": list(self.removed_ids),
            "deletedCount": self.deleted_count,
            "reassignedRelationCount": self.reassigned_relation_count,
            "droppedRelationCount": self.dropped_relation_count,
        }


class MergeExecutor:
    """
    Runs merges for one MergeTarget on an SA session.

    Usage:
        executor = MergeExecutor(session, VENDOR_TARGET)
        result = await executor.merge(keep_id, [dupe_1, dupe_2])

    The session must not hold uncommitted work from the caller: merge()
    commits or rolls back the session's transaction.
    """

    def __init__(self, session: AsyncSession, target: MergeTarget):
        self.session = session
        self.target = target

    async def merge(
        self,
        keep_id: str,
        remove_ids: Sequence[str],
        scope: Sequence[Any] = (),
    ) -> MergeResult:
        """
        Args:
            keep_id: record that survives.
            remove_ids: records folded into it and deleted.
            scope: extra WHERE clauses every id must satisfy
                   (e.g. Guest.wedding_id == wedding_id).

        Raises:
            MergeValidationError: nothing to remove.
            ConflictError: keep_id is also in remove_ids.
            NotFoundError: an id does not exist (or is out of scope).
            MergeTransactionError: a statement failed; nothing changed.
        """
        removed = list(dict.fromkeys(remove_ids))
        if not removed:
            raise MergeValidationError("removeIds must not be empty")
        if keep_id in removed:
            raise ConflictError(
                f"{self.target.audit_type} {keep_id} cannot be both kept and removed",
                {"keepId": keep_id},
            )

        result = MergeResult(keep_id=keep_id, removed_ids=removed)
        try:
            await self._lock(keep_id, removed, scope)

            for ref in self.target.references:
                if ref.unique_with:
                    moved, dropped = await self._reassign_unique(ref, keep_id, removed)
                    result.dropped_relation_count += dropped
                else:
                    moved = await self._reassign(ref, keep_id, removed)
                result.reassigned_relation_count += moved

            model = self.target.model
            deleted = await self.session.execute(
                delete(model)
                .where(model.id.in_(removed))
                .execution_options(synchronize_session=False)
            )
            if deleted.rowcount != len(removed):
                raise MergeTransactionError(
                    f"Expected to delete {len(removed)} {self.target.entity}s, deleted {deleted.rowcount}",
                    {"keepId": keep_id, "removeIds": removed},
                )
            result.deleted_count = deleted.rowcount

            await self.session.commit()
        except (NotFoundError, MergeTransactionError):
            await self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception(
                "Merge failed, rolled back: %s <- %s",
                keep_id[:8],
                ",".join(r[:8] for r in removed),
            )
            raise MergeTransactionError(
                f"Merge into {self.target.entity} {keep_id} failed and was rolled back",
                {"keepId": keep_id, "removeIds": removed, "cause": type(exc).__name__},
            ) from exc

        logger.info(
            "Merge complete: %s <- %s | deleted=%d reassigned=%d dropped=%d",
            keep_id[:8],
            ",".join(r[:8] for r in removed),
            result.deleted_count,
            result.reassigned_relation_count,
            result.dropped_relation_count,
        )
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _lock(self, keep_id: str, removed: list[str], scope: Sequence[Any]) -> None:
        model = self.target.model
        wanted = [keep_id, *removed]
        rows = await self.session.execute(
            select(model.id)
            .where(model.id.in_(wanted), *scope)
            .with_for_update()
        )
        found = set(rows.scalars().all())
        missing = [entity_id for entity_id in wanted if entity_id not in found]
        if missing:
            raise NotFoundError(
                f"{self.target.audit_type} not found: {', '.join(missing)}",
                {"missingIds": missing},
            )

    async def _reassign(self, ref: Reference, keep_id: str, removed: list[str]) -> int:
        moved = await self.session.execute(
            update(ref.model)
            .where(ref.attr.in_(removed))
            .values({ref.column: keep_id})
            .execution_options(synchronize_session=False)
        )
        return moved.rowcount

    async def _reassign_unique(
        self, ref: Reference, keep_id: str, removed: list[str]
    ) -> tuple[int, int]:
        """
        Move rows one removed id at a time so rows moved earlier count as
        the keeper's when the next id is checked. Leftovers are collisions.
        """
        moved_total = 0
        keeper_values = select(ref.unique_attr).where(ref.attr == keep_id)
        for remove_id in removed:
            moved = await self.session.execute(
                update(ref.model)
                .where(ref.attr == remove_id, ref.unique_attr.not_in(keeper_values))
                .values({ref.column: keep_id})
                .execution_options(synchronize_session=False)
            )
            moved_total += moved.rowcount

        dropped = await self.session.execute(
            delete(ref.model)
            .where(ref.attr.in_(removed))
            .execution_options(synchronize_session=False)
        )
        return moved_total, dropped.rowcount
