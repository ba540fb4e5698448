"""
HMAC-SHA256 verification for requests from the web tier's proxy.

Every route except /health is reached through the proxy, which signs the
request on behalf of the logged-in user. Browsers never talk to this
service directly.

Canonical string format: METHOD|normalizedPath|sortedQueryString|timestamp|userId|bodyHash
Must match the proxy's signer exactly.
"""

import hashlib
import hmac
import re
import time

from fastapi import HTTPException, Request

from services.api.config import settings

SIGNATURE_HEADER = "X-Proxy-Signature"
TIMESTAMP_HEADER = "X-Proxy-Timestamp"
USER_HEADER = "X-Proxy-User-Id"
BODY_HASH_HEADER = "X-Proxy-Body-Hash"

REPLAY_WINDOW_SECONDS = 30


def normalize_path(path: str) -> str:
    """Normalize path: lowercase, collapse //, strip trailing /, reject .."""
    normalized = re.sub(r"/+", "/", path.lower())
    if len(normalized) > 1 and normalized.endswith("/"):
        normalized = normalized[:-1]
    if ".." in normalized.split("/"):
        raise HTTPException(status_code=400, detail="Path traversal detected")
    return normalized


def sort_query_string(query_string: str) -> str:
    """Sort query params alphabetically."""
    if not query_string:
        return ""
    return "&".join(sorted(p for p in query_string.split("&") if p))


def compute_body_hash(body: bytes) -> str:
    """SHA-256 hex digest of raw body bytes."""
    return hashlib.sha256(body).hexdigest()


def canonical_string(method: str, path: str, query: str, timestamp: int, user_id: str, body_hash: str) -> str:
    return f"{method.upper()}|{normalize_path(path)}|{sort_query_string(query)}|{timestamp}|{user_id}|{body_hash}"


def sign(secret: str, canonical: str) -> str:
    return hmac.new(secret.encode("utf-8"), canonical.encode("utf-8"), hashlib.sha256).hexdigest()


async def verify_proxy_hmac(request: Request) -> str:
    """
    Verify the proxy signature and return the signed user id.

    Raises HTTPException: 503 when no secret is configured, 401 on any
    missing header, stale timestamp, body hash or signature mismatch.
    """
    secret = settings.proxy_hmac_secret
    if not secret:
        raise HTTPException(status_code=503, detail="HMAC secret not configured")

    signature = request.headers.get(SIGNATURE_HEADER)
    timestamp_str = request.headers.get(TIMESTAMP_HEADER)
    user_id = request.headers.get(USER_HEADER)
    body_hash_header = request.headers.get(BODY_HASH_HEADER)

    if not all([signature, timestamp_str, user_id, body_hash_header]):
        raise HTTPException(status_code=401, detail="Missing required HMAC headers")

    try:
        timestamp = int(timestamp_str)  # type: ignore[arg-type]
    except (ValueError, TypeError):
        raise HTTPException(status_code=401, detail="Invalid timestamp format")

    if abs(int(time.time()) - timestamp) > REPLAY_WINDOW_SECONDS:
        raise HTTPException(status_code=401, detail="Request timestamp expired")

    # Raw body, before any JSON parsing
    body = await request.body()
    computed_body_hash = compute_body_hash(body)
    if not hmac.compare_digest(computed_body_hash, body_hash_header):  # type: ignore[arg-type]
        raise HTTPException(status_code=401, detail="Body hash mismatch")

    expected = sign(
        secret,
        canonical_string(
            request.method,
            request.url.path,
            request.url.query or "",
            timestamp,
            user_id,  # type: ignore[arg-type]
            computed_body_hash,
        ),
    )
    if not hmac.compare_digest(expected, signature):  # type: ignore[arg-type]
        raise HTTPException(status_code=401, detail="Invalid signature")

    request.state.user_id = user_id
    return user_id  # type: ignore[return-value]
