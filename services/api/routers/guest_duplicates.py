"""
Guest list duplicates for one wedding: report, merge, and the pre-import check.
Merges are scoped to the wedding and logged to AuditLog.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.api.config import settings
from services.api.db.models import Guest
from services.api.dedup.guest_import import ImportGuest, detect_import_duplicates
from services.api.dedup.ranker import KeeperCandidate
from services.api.dedup.service import DuplicateService, RankedGroup
from services.api.dedup.targets import GUEST_TARGET
from services.api.middleware.audit import audit_action
from services.api.routers._deps import get_db, require_signed_user

router = APIRouter(prefix="/weddings/{wedding_id}", tags=["guest-duplicates"])


class MergeGuestsRequest(BaseModel):
    keepGuestId: str = Field(..., min_length=1)
    removeGuestIds: list[str] = Field(..., min_length=1, max_length=200)


class ImportGuestRow(BaseModel):
    name: str = Field(..., min_length=1, max_length=300)
    email: Optional[str] = None
    phone: Optional[str] = None
    householdName: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Guest name is required")
        return v


class ImportCheckRequest(BaseModel):
    guests: list[ImportGuestRow] = Field(..., max_length=2000)
    threshold: Optional[float] = Field(default=None, ge=0.0)


def guest_to_dict(candidate: KeeperCandidate, rank: int) -> dict[str, Any]:
    guest: Guest = candidate.record
    return {
        "id": guest.id,
        "name": guest.name,
        "email": guest.email,
        "phone": guest.phone,
        "householdId": guest.household_id,
        "side": guest.side,
        "usage": candidate.usage,
        "totalUsage": candidate.total_usage,
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
        "guests": [guest_to_dict(c, i) for i, c in enumerate(ranked_group.ranked)],
    }


@router.get("/duplicate-guests")
async def list_duplicate_guests(
    wedding_id: str,
    request: Request,
    threshold: Optional[float] = Query(None, ge=0.0, le=1.0),
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(require_signed_user),
):
    groups = await DuplicateService(db, GUEST_TARGET).report(
        threshold if threshold is not None else settings.guest_duplicate_threshold,
        [Guest.wedding_id == wedding_id],
    )
    return {
        "groups": [group_to_dict(g) for g in groups],
        "totalGroups": len(groups),
        "totalExtraCopies": sum(g.extra_copies for g in groups),
    }


@router.post("/duplicate-guests/merge")
async def merge_duplicate_guests(
    wedding_id: str,
    body: MergeGuestsRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(require_signed_user),
):
    """Keep one guest; invitations and measurements of the others move to it."""
    result = await DuplicateService(db, GUEST_TARGET).merge(
        body.keepGuestId,
        body.removeGuestIds,
        scope=[Guest.wedding_id == wedding_id],
    )
    await audit_action(
        db,
        request,
        actor_id=actor_id,
        action="guest.merge",
        target_type=GUEST_TARGET.audit_type,
        target_id=result.keep_id,
        before={"weddingId": wedding_id, "removeIds": result.removed_ids},
        after=result.to_dict(),
    )
    return result.to_dict()


@router.post("/guests/import-check")
async def check_guest_import(
    wedding_id: str,
    body: ImportCheckRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(require_signed_user),
):
    """Flag rows of a pending import that duplicate existing guests or each other."""
    rows = await db.execute(
        select(Guest).where(Guest.wedding_id == wedding_id).order_by(Guest.id)
    )
    existing = rows.scalars().all()

    incoming = [
        ImportGuest(name=g.name, email=g.email, phone=g.phone, household_name=g.householdName)
        for g in body.guests
    ]
    result = detect_import_duplicates(
        incoming,
        existing,
        threshold=body.threshold if body.threshold is not None else settings.guest_import_threshold,
    )
    return {
        "duplicatesWithExisting": [
            {
                "importIndex": m.import_index,
                "matchedGuestId": m.matched_guest_id,
                "matchedGuestName": m.matched_guest_name,
                "confidence": m.confidence,
                "matchReasons": m.match_reasons,
            }
            for m in result.duplicates_with_existing
        ],
        "duplicatesInBatch": [
            {
                "index1": d.index1,
                "index2": d.index2,
                "confidence": d.confidence,
                "matchReasons": d.match_reasons,
            }
            for d in result.duplicates_in_batch
        ],
    }
