"""
SQLAlchemy async database module.

Re-exports engine, session, and model utilities for the FastAPI service.
"""

from services.api.db.engine import create_engine, standalone_session
from services.api.db.session import get_db
from services.api.db.models import (
    Base,
    AuditLog,
    Vendor,
    Booking,
    Contract,
    Review,
    Expense,
    Message,
    VendorFavorite,
    VendorLead,
    VendorClaim,
    Household,
    Guest,
    Invitation,
    MeasurementProfile,
)

__all__ = [
    "create_engine",
    "standalone_session",
    "get_db",
    "Base",
    "AuditLog",
    "Vendor",
    "Booking",
    "Contract",
    "Review",
    "Expense",
    "Message",
    "VendorFavorite",
    "VendorLead",
    "VendorClaim",
    "Household",
    "Guest",
    "Invitation",
    "MeasurementProfile",
]
