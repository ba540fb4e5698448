"""Usage summary: how many rows in each reference table point at a record."""

import logging
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.api.dedup.targets import MergeTarget

logger = logging.getLogger(__name__)


async def count_usage(
    session: AsyncSession,
    target: MergeTarget,
    ids: Sequence[str],
) -> dict[str, dict[str, int]]:
    """
    One grouped COUNT per reference table.

    Returns {id: {reference name: count}} with a zero for every reference,
    so callers can sum without key checks.
    """
    usage = {entity_id: {ref.name: 0 for ref in target.references} for entity_id in ids}
    if not usage:
        return usage

    id_list = list(usage)
    for ref in target.references:
        column = ref.attr
        result = await session.execute(
            select(column, func.count())
            .where(column.in_(id_list))
            .group_by(column)
        )
        for entity_id, count in result.all():
            if entity_id in usage:
                usage[entity_id][ref.name] = int(count)

    logger.debug("Counted %s usage for %d records", target.entity, len(id_list))
    return usage
