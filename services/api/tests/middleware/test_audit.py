"""
Audit logging.

Verifies the client IP priority chain:
  X-Proxy-Client-IP > X-Forwarded-For > request.client.host > "unknown"
and that AuditLogger writes one committed insert per entry.
"""

from unittest.mock import MagicMock

import pytest

from services.api.middleware.audit import AuditLogger, audit_action, extract_client_info


def _make_request(
    headers: dict[str, str] | None = None,
    client_host: str | None = "127.0.0.1",
) -> MagicMock:
    req = MagicMock()
    _headers = headers or {}
    req.headers = MagicMock()
    req.headers.get = lambda key, default=None: _headers.get(key, default)

    if client_host is not None:
        req.client = MagicMock()
        req.client.host = client_host
    else:
        req.client = None

    return req


def test_proxy_client_ip_header_used():
    req = _make_request(headers={"X-Proxy-Client-IP": "203.0.113.42", "User-Agent": "test-agent"})
    ip, ua = extract_client_info(req)
    assert ip == "203.0.113.42"
    assert ua == "test-agent"


def test_forwarded_for_used_when_proxy_header_missing():
    req = _make_request(headers={"X-Forwarded-For": "198.51.100.1, 10.0.0.1", "User-Agent": "ua"})
    ip, _ = extract_client_info(req)
    assert ip == "198.51.100.1"


def test_client_host_used_when_both_headers_missing():
    req = _make_request(headers={"User-Agent": "ua"}, client_host="10.20.30.40")
    ip, _ = extract_client_info(req)
    assert ip == "10.20.30.40"


def test_unknown_when_all_missing():
    req = _make_request(headers={}, client_host=None)
    ip, ua = extract_client_info(req)
    assert ip == "unknown"
    assert ua == "unknown"


def test_proxy_header_takes_priority_over_forwarded_for():
    req = _make_request(
        headers={"X-Proxy-Client-IP": "203.0.113.42", "X-Forwarded-For": "198.51.100.1"},
        client_host="10.0.0.1",
    )
    ip, _ = extract_client_info(req)
    assert ip == "203.0.113.42"


@pytest.mark.asyncio
async def test_logger_inserts_and_commits(sa_session):
    entry_id = await AuditLogger(sa_session.mock).log(
        actor_id="admin-001",
        action="vendor.merge",
        target_type="Vendor",
        target_id="keeper",
        ip_address="10.0.0.1",
        user_agent="ua",
        before={"removeIds": ["dupe-1"]},
    )

    [stmt] = sa_session.statements
    assert stmt.is_insert
    assert stmt.table.name == "audit_logs"
    params = stmt.compile().params
    assert params["id"] == entry_id
    assert params["before"] == {"removeIds": ["dupe-1"]}
    assert params["after"] is None
    sa_session.mock.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_audit_action_reads_request(sa_session):
    req = _make_request(headers={"X-Proxy-Client-IP": "203.0.113.9", "User-Agent": "viah-web"})
    await audit_action(
        sa_session.mock, req,
        actor_id="admin-001", action="guest.merge", target_type="Guest", target_id="g-1",
    )

    params = sa_session.statements[0].compile().params
    assert params["ip_address"] == "203.0.113.9"
    assert params["user_agent"] == "viah-web"
    assert params["action"] == "guest.merge"
