"""Shared dependencies for routers."""
from fastapi import Request

from services.api.db.session import get_db
from services.api.middleware.proxy_hmac import verify_proxy_hmac

__all__ = ["get_db", "require_signed_user"]


async def require_signed_user(request: Request) -> str:
    """
    Validates the proxy's HMAC signature.

    Returns the verified actor id from the signed X-Proxy-User-Id header.
    No fallback -- if the secret is missing or verification fails, the request is rejected.
    """
    return await verify_proxy_hmac(request)
