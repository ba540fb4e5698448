"""
Duplicate households (families) on a wedding's guest list.
A merge moves the merged family's guests to the survivor, deletes the merged
household, and records the planner's kept_older / kept_newer decision in AuditLog.
"""

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from services.api.config import settings
from services.api.db.models import Household
from services.api.dedup.ranker import KeeperCandidate
from services.api.dedup.service import DuplicateService, RankedGroup
from services.api.dedup.targets import HOUSEHOLD_TARGET
from services.api.middleware.audit import audit_action
from services.api.routers._deps import get_db, require_signed_user

router = APIRouter(prefix="/weddings/{wedding_id}", tags=["household-duplicates"])


class MergeHouseholdsRequest(BaseModel):
    survivorId: str = Field(..., min_length=1)
    mergedId: str = Field(..., min_length=1)
    decision: Literal["kept_older", "kept_newer"]


def household_to_dict(candidate: KeeperCandidate, rank: int) -> dict[str, Any]:
    household: Household = candidate.record
    return {
        "id": household.id,
        "name": household.name,
        "contactEmail": household.contact_email,
        "maxCount": household.max_count,
        "affiliation": household.affiliation,
        "relationshipTier": household.relationship_tier,
        "createdAt": household.created_at.isoformat() if household.created_at else None,
        "guestCount": candidate.usage.get("guests", 0),
        "rank": rank,
    }


def group_to_dict(ranked_group: RankedGroup) -> dict[str, Any]:
    group = ranked_group.group
    return {
        "name": group.name,
        "count": group.count,
        "minScore": round(group.min_score, 4),
        "maxScore": round(group.max_score, 4),
        "suggestedKeepId": ranked_group.suggested_keep_id,
        "households": [household_to_dict(c, i) for i, c in enumerate(ranked_group.ranked)],
    }


@router.get("/duplicate-households")
async def list_duplicate_households(
    wedding_id: str,
    threshold: Optional[float] = Query(None, ge=0.0, le=1.0),
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(require_signed_user),
):
    groups = await DuplicateService(db, HOUSEHOLD_TARGET).report(
        threshold if threshold is not None else settings.guest_duplicate_threshold,
        [Household.wedding_id == wedding_id],
    )
    return {
        "groups": [group_to_dict(g) for g in groups],
        "totalGroups": len(groups),
        "totalExtraCopies": sum(g.extra_copies for g in groups),
    }


@router.post("/households/merge")
async def merge_households(
    wedding_id: str,
    body: MergeHouseholdsRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(require_signed_user),
):
    """Fold mergedId into survivorId; both must belong to this wedding."""
    result = await DuplicateService(db, HOUSEHOLD_TARGET).merge(
        body.survivorId,
        [body.mergedId],
        scope=[Household.wedding_id == wedding_id],
    )
    audit_id = await audit_action(
        db,
        request,
        actor_id=actor_id,
        action="household.merge",
        target_type=HOUSEHOLD_TARGET.audit_type,
        target_id=result.keep_id,
        before={"weddingId": wedding_id, "mergedId": body.mergedId, "decision": body.decision},
        after=result.to_dict(),
    )
    return {**result.to_dict(), "decision": body.decision, "auditId": audit_id}
