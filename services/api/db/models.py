"""
SQLAlchemy DeclarativeBase models -- mirrors of the subset of the planner's
schema that the dedup service touches.

Column names are snake_case to match the PostgreSQL columns created by the
web tier's Drizzle migrations.

IMPORTANT: These models are NOT used for migrations. The web tier owns the
DDL. Only the columns this service reads or rewrites are mirrored.
"""

import uuid as _uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, JSON, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AuditLog(Base):
    """Append-only audit log. NEVER update or delete rows from this table."""

    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    actor_id: Mapped[str] = mapped_column(String)
    action: Mapped[str] = mapped_column(String)
    target_type: Mapped[str] = mapped_column(String)
    target_id: Mapped[str] = mapped_column(String)
    before: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    after: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[str] = mapped_column(String)
    user_agent: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


# ---------------------------------------------------------------------------
# Vendors and the tables that reference them
# ---------------------------------------------------------------------------

class Vendor(Base):
    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    user_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    name: Mapped[str] = mapped_column(Text)
    slug: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    category: Mapped[str] = mapped_column(Text)
    categories: Mapped[Optional[list[str]]] = mapped_column(ARRAY(Text), nullable=True)
    location: Mapped[str] = mapped_column(Text)
    city: Mapped[str] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # false = ghost profile imported from Google Places
    claimed: Mapped[bool] = mapped_column(Boolean, default=True)
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    source: Mapped[str] = mapped_column(Text, default="manual")
    view_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime)

    @property
    def is_ghost_profile(self) -> bool:
        return not self.claimed and self.user_id is None


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    wedding_id: Mapped[str] = mapped_column(String)
    vendor_id: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(Text, default="pending")


class Contract(Base):
    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    wedding_id: Mapped[str] = mapped_column(String)
    vendor_id: Mapped[str] = mapped_column(String)


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    vendor_id: Mapped[str] = mapped_column(String)
    rating: Mapped[int] = mapped_column(Integer)


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    wedding_id: Mapped[str] = mapped_column(String)
    vendor_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    conversation_id: Mapped[str] = mapped_column(String)
    vendor_id: Mapped[str] = mapped_column(String)


class VendorFavorite(Base):
    """Unique per (user_id, vendor_id)."""

    __tablename__ = "vendor_favorites"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String)
    vendor_id: Mapped[str] = mapped_column(String)


class VendorLead(Base):
    __tablename__ = "vendor_leads"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    wedding_id: Mapped[str] = mapped_column(String)
    vendor_id: Mapped[str] = mapped_column(String)


class VendorClaim(Base):
    __tablename__ = "vendor_claims"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    vendor_id: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(Text, default="pending")


# ---------------------------------------------------------------------------
# Guests and the tables that reference them
# ---------------------------------------------------------------------------

class Household(Base):
    """A family or party on a wedding's guest list; guests point at it."""

    __tablename__ = "households"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    wedding_id: Mapped[str] = mapped_column(String)
    name: Mapped[str] = mapped_column(Text)
    contact_email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    max_count: Mapped[int] = mapped_column(Integer, default=1)
    affiliation: Mapped[str] = mapped_column(Text, default="bride")
    relationship_tier: Mapped[str] = mapped_column(Text, default="friend")
    created_at: Mapped[datetime] = mapped_column(DateTime)


class Guest(Base):
    __tablename__ = "guests"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    wedding_id: Mapped[str] = mapped_column(String)
    household_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    name: Mapped[str] = mapped_column(Text)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    side: Mapped[str] = mapped_column(Text, default="mutual")


class Invitation(Base):
    """Unique per (guest_id, event_id)."""

    __tablename__ = "invitations"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    guest_id: Mapped[str] = mapped_column(String)
    event_id: Mapped[str] = mapped_column(String)
    rsvp_status: Mapped[str] = mapped_column(Text, default="pending")


class MeasurementProfile(Base):
    __tablename__ = "measurement_profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(_uuid.uuid4()))
    guest_id: Mapped[str] = mapped_column(String)
