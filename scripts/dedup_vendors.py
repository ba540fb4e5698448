#!/usr/bin/env python3
"""
Vendor duplicate report / auto-clean from the command line.

Dry run by default: prints the duplicate groups and the vendor each would
be merged into. --apply merges every group and writes one audit entry per
merge, same as the admin auto-clean endpoint.

Usage:
    PYTHONPATH=. python3 scripts/dedup_vendors.py [--city Fresno] [--threshold 0.9]
    PYTHONPATH=. python3 scripts/dedup_vendors.py --apply --actor <admin user id>
"""

import argparse
import asyncio
import logging
import sys

from sqlalchemy import func

from services.api.config import settings
from services.api.db.engine import standalone_session
from services.api.db.models import Vendor
from services.api.dedup.service import DuplicateService
from services.api.dedup.targets import VENDOR_TARGET
from services.api.middleware.audit import AuditLogger

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("dedup_vendors")


async def run(threshold: float, city: str | None, apply: bool, actor: str | None) -> int:
    filters = [func.lower(Vendor.city) == city.lower()] if city else []

    async with standalone_session() as session:
        service = DuplicateService(session, VENDOR_TARGET)

        if not apply:
            groups = await service.report(threshold, filters)
            for ranked_group in groups:
                group = ranked_group.group
                logger.info(
                    "%-40s %-24s x%d  score %.2f-%.2f",
                    group.name[:40], group.members[0].city or "-", group.count,
                    group.min_score, group.max_score,
                )
                for i, candidate in enumerate(ranked_group.ranked):
                    logger.info(
                        "    %s %s  usage=%d%s",
                        "KEEP  " if i == 0 else "remove",
                        candidate.id[:8],
                        candidate.total_usage,
                        "  verified" if candidate.verified or candidate.claimed else "",
                    )
            logger.info(
                "%d groups, %d extra copies (dry run, pass --apply to merge)",
                len(groups), sum(g.extra_copies for g in groups),
            )
            return 0

        stats = await service.auto_clean(threshold, filters)
        audit = AuditLogger(session)
        for result in stats.merges:
            await audit.log(
                actor_id=actor,
                action="vendor.auto_merge",
                target_type=VENDOR_TARGET.audit_type,
                target_id=result.keep_id,
                ip_address="script",
                user_agent="dedup_vendors",
                before={"removeIds": result.removed_ids},
                after=result.to_dict(),
            )
        logger.info("Auto-clean: %s", stats.to_dict())
        return 1 if stats.errors else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Find and merge duplicate vendor profiles")
    parser.add_argument("--threshold", type=float, default=settings.vendor_duplicate_threshold)
    parser.add_argument("--city", default=None, help="Only vendors in this city")
    parser.add_argument("--apply", action="store_true", help="Merge every group (default: dry run)")
    parser.add_argument("--actor", default=None, help="Admin user id recorded in the audit log")
    args = parser.parse_args()

    if not 0.0 <= args.threshold <= 1.0:
        parser.error("--threshold must be between 0 and 1")
    if args.apply and not args.actor:
        parser.error("--apply requires --actor")

    sys.exit(asyncio.run(run(args.threshold, args.city, args.apply, args.actor)))


if __name__ == "__main__":
    main()
