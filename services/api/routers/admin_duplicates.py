"""
Admin Duplicate Vendors: find, remove and auto-clean duplicate vendor profiles.
Every merge is logged to AuditLog. The proxy only forwards /admin/* for admin users.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from services.api.config import settings
from services.api.db.models import Vendor
from services.api.dedup.merge import MergeResult
from services.api.dedup.ranker import KeeperCandidate
from services.api.dedup.service import DuplicateService, RankedGroup
from services.api.dedup.targets import VENDOR_TARGET
from services.api.middleware.audit import audit_action
from services.api.routers._deps import get_db, require_signed_user

router = APIRouter(prefix="/admin/duplicate-vendors", tags=["admin-duplicates"])

# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class RemoveDuplicatesRequest(BaseModel):
    keepVendorId: str = Field(..., min_length=1)
    removeVendorIds: list[str] = Field(..., min_length=1, max_length=500)


class AutoCleanRequest(BaseModel):
    threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    city: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def vendor_to_dict(candidate: KeeperCandidate, rank: int) -> dict[str, Any]:
    vendor: Vendor = candidate.record
    return {
        "id": vendor.id,
        "name": vendor.name,
        "slug": vendor.slug,
        "location": vendor.location,
        "city": vendor.city,
        "email": vendor.email,
        "phone": vendor.phone,
        "website": vendor.website,
        "categories": vendor.categories or [vendor.category],
        "claimed": vendor.claimed,
        "verified": vendor.verified,
        "isGhostProfile": vendor.is_ghost_profile,
        "createdAt": vendor.created_at.isoformat() if vendor.created_at else None,
        "description": vendor.description,
        "usage": candidate.usage,
        "totalUsage": candidate.total_usage,
        "rank": rank,
    }


def group_to_dict(ranked_group: RankedGroup) -> dict[str, Any]:
    group = ranked_group.group
    return {
        "name": group.name,
        "city": group.members[0].city or None,
        "count": group.count,
        "minScore": round(group.min_score, 4),
        "maxScore": round(group.max_score, 4),
        "suggestedKeepId": ranked_group.suggested_keep_id,
        "vendors": [vendor_to_dict(c, i) for i, c in enumerate(ranked_group.ranked)],
    }


def _city_filter(city: Optional[str]) -> list:
    if not city or not city.strip():
        return []
    return [func.lower(Vendor.city) == city.strip().lower()]


async def _audit_merge(db: AsyncSession, request: Request, actor_id: str, result: MergeResult, action: str) -> None:
    await audit_action(
        db,
        request,
        actor_id=actor_id,
        action=action,
        target_type=VENDOR_TARGET.audit_type,
        target_id=result.keep_id,
        before={"removeIds": result.removed_ids},
        after=result.to_dict(),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("")
async def list_duplicate_vendors(
    request: Request,
    threshold: Optional[float] = Query(None, ge=0.0, le=1.0),
    city: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(require_signed_user),
):
    """
    Duplicate vendor groups, members in keeper order.
    Groups never span cities.
    """
    groups = await DuplicateService(db, VENDOR_TARGET).report(
        threshold if threshold is not None else settings.vendor_duplicate_threshold,
        _city_filter(city),
    )
    return {
        "groups": [group_to_dict(g) for g in groups],
        "totalGroups": len(groups),
        "totalExtraCopies": sum(g.extra_copies for g in groups),
    }


@router.post("/remove")
async def remove_duplicate_vendors(
    body: RemoveDuplicatesRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(require_signed_user),
):
    """Keep one vendor, fold the others into it and delete them."""
    result = await DuplicateService(db, VENDOR_TARGET).merge(body.keepVendorId, body.removeVendorIds)
    await _audit_merge(db, request, actor_id, result, "vendor.merge")
    return result.to_dict()


@router.post("/auto-clean")
async def auto_clean_duplicate_vendors(
    request: Request,
    body: Optional[AutoCleanRequest] = None,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(require_signed_user),
):
    """Merge every duplicate group into its top-ranked vendor."""
    body = body or AutoCleanRequest()
    stats = await DuplicateService(db, VENDOR_TARGET).auto_clean(
        body.threshold if body.threshold is not None else settings.vendor_duplicate_threshold,
        _city_filter(body.city),
    )
    for result in stats.merges:
        await _audit_merge(db, request, actor_id, result, "vendor.auto_merge")
    return stats.to_dict()
