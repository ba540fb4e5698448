"""
Sentry instrumentation for the FastAPI service.
Strips credentials and proxy signatures from events before they leave the process.
"""

from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from services.api.config import settings

SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie", "x-proxy-signature"}


def _filter_headers(headers: Any) -> None:
    if not isinstance(headers, dict):
        return
    for key in list(headers.keys()):
        if key.lower() in SENSITIVE_HEADERS:
            headers[key] = "[FILTERED]"


def _strip_sensitive_data(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """before_send hook: filter sensitive headers in breadcrumbs and request data."""
    for breadcrumb in event.get("breadcrumbs", {}).get("values", []):
        data = breadcrumb.get("data", {})
        if isinstance(data, dict):
            _filter_headers(data.get("headers"))
    request = event.get("request", {})
    if isinstance(request, dict):
        _filter_headers(request.get("headers"))
    return event


def setup_sentry() -> None:
    if not settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"{settings.app_name}@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        before_send=_strip_sensitive_data,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )
