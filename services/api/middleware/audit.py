"""
Audit logging for destructive actions.
Writes append-only AuditLog entries; merges delete rows, so every merge is recorded.
"""

from datetime import datetime, timezone
from typing import Optional, Any
from uuid import uuid4

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from services.api.db.models import AuditLog


class AuditLogger:
    """Append-only audit logger."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        actor_id: str,
        action: str,
        target_type: str,
        target_id: str,
        ip_address: str,
        user_agent: str,
        before: Optional[dict[str, Any]] = None,
        after: Optional[dict[str, Any]] = None,
    ) -> str:
        """
        Write an audit log entry and commit it.

        Action naming convention: {entity}.{verb} (e.g. 'vendor.merge').
        Returns the id of the created entry.
        """
        entry_id = str(uuid4())
        stmt = insert(AuditLog).values(
            id=entry_id,
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            before=before,
            after=after,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=datetime.now(timezone.utc),
        )
        await self.session.execute(stmt)
        await self.session.commit()
        return entry_id


def extract_client_info(request) -> tuple[str, str]:
    """
    IP address and user agent of the original caller.

    Prefers X-Proxy-Client-IP (set by the signing proxy), then
    X-Forwarded-For, then the socket peer.
    """
    ip_address = request.headers.get("X-Proxy-Client-IP", "").strip()
    if not ip_address:
        ip_address = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if not ip_address:
        ip_address = request.client.host if request.client else "unknown"

    user_agent = request.headers.get("User-Agent", "unknown")

    return ip_address, user_agent


async def audit_action(
    db: AsyncSession,
    request,
    actor_id: str,
    action: str,
    target_type: str,
    target_id: str,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
) -> str:
    """Log an action, pulling IP and user agent from the request."""
    ip_address, user_agent = extract_client_info(request)
    return await AuditLogger(db).log(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        ip_address=ip_address,
        user_agent=user_agent,
        before=before,
        after=after,
    )
