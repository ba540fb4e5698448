"""
Mergeable entity kinds and the tables that point at them.

A MergeTarget tells the detector how to compare records of one kind and
tells the merge executor which foreign-key columns must follow the keeper.
Adding a table that references vendors means adding a Reference here;
anything not listed is left pointing at a deleted row.
"""

from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Optional

from services.api.db.models import (
    Booking,
    Contract,
    Expense,
    Guest,
    Household,
    Invitation,
    MeasurementProfile,
    Message,
    Review,
    Vendor,
    VendorClaim,
    VendorFavorite,
    VendorLead,
)
from services.api.dedup.ranker import KeeperCandidate
from services.api.dedup.similarity import business_key, normalize


@dataclass(frozen=True)
class Reference:
    """A foreign-key column holding the id of a mergeable record."""
    name: str
    model: Any
    column: str
    # Column that is unique together with `column`; rows that would collide
    # with one the keeper already has are dropped instead of moved.
    unique_with: Optional[str] = None

    @property
    def attr(self):
        return getattr(self.model, self.column)

    @property
    def unique_attr(self):
        return getattr(self.model, self.unique_with) if self.unique_with else None


@dataclass(frozen=True)
class MergeTarget:
    entity: str
    audit_type: str
    model: Any
    references: tuple[Reference, ...]
    name_key: Callable[[str], str]
    partition: Callable[[Any], Hashable]
    order_by: tuple
    to_candidate: Callable[[Any, dict[str, int]], KeeperCandidate]


def _vendor_candidate(vendor: Vendor, usage: dict[str, int]) -> KeeperCandidate:
    return KeeperCandidate(
        id=vendor.id,
        name=vendor.name,
        verified=bool(vendor.verified),
        claimed=bool(vendor.claimed),
        email=vendor.email,
        website=vendor.website,
        usage=dict(usage),
        record=vendor,
    )


def _household_candidate(household: Household, usage: dict[str, int]) -> KeeperCandidate:
    return KeeperCandidate(
        id=household.id,
        name=household.name,
        email=household.contact_email,
        usage=dict(usage),
        record=household,
    )


def _guest_candidate(guest: Guest, usage: dict[str, int]) -> KeeperCandidate:
    return KeeperCandidate(
        id=guest.id,
        name=guest.name,
        email=guest.email,
        usage=dict(usage),
        record=guest,
    )


VENDOR_TARGET = MergeTarget(
    entity="vendor",
    audit_type="Vendor",
    model=Vendor,
    references=(
        Reference("bookings", Booking, "vendor_id"),
        Reference("contracts", Contract, "vendor_id"),
        Reference("reviews", Review, "vendor_id"),
        Reference("expenses", Expense, "vendor_id"),
        Reference("messages", Message, "vendor_id"),
        Reference("favorites", VendorFavorite, "vendor_id", unique_with="user_id"),
        Reference("leads", VendorLead, "vendor_id"),
        Reference("claims", VendorClaim, "vendor_id"),
    ),
    name_key=business_key,
    partition=lambda vendor: normalize(vendor.city),
    order_by=(Vendor.created_at, Vendor.id),
    to_candidate=_vendor_candidate,
)

GUEST_TARGET = MergeTarget(
    entity="guest",
    audit_type="Guest",
    model=Guest,
    references=(
        Reference("invitations", Invitation, "guest_id", unique_with="event_id"),
        Reference("measurementProfiles", MeasurementProfile, "guest_id"),
    ),
    name_key=normalize,
    partition=lambda guest: guest.wedding_id,
    order_by=(Guest.id,),
    to_candidate=_guest_candidate,
)

# Oldest household first, so a full tie keeps the older family.
HOUSEHOLD_TARGET = MergeTarget(
    entity="household",
    audit_type="Household",
    model=Household,
    references=(
        Reference("guests", Guest, "household_id"),
    ),
    name_key=normalize,
    partition=lambda household: household.wedding_id,
    order_by=(Household.created_at, Household.id),
    to_candidate=_household_candidate,
)
