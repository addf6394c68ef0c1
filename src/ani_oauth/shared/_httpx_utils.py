"""Utilities for creating the httpx client used against the Ani server."""

from typing import Any

import httpx

from ani_oauth.settings import AuthorizationSettings


def create_http_client(
    settings: AuthorizationSettings,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient configured from settings.

    Redirects are followed, JSON is requested, and when `settings.access_token`
    is set it is sent as a bearer token on every request.

    Args:
        settings: Base URL, timeout and optional access token
        headers: Extra headers merged over the defaults
        transport: Optional transport, mostly for tests

    Returns:
        The configured client. The caller owns it and must close it.
    """
    merged_headers = {"Accept": "application/json"}
    if settings.access_token:
        merged_headers["Authorization"] = f"Bearer {settings.access_token}"
    if headers:
        merged_headers.update(headers)

    kwargs: dict[str, Any] = {
        "base_url": str(settings.api_base_url),
        "follow_redirects": True,
        "timeout": httpx.Timeout(settings.request_timeout),
        "headers": merged_headers,
    }
    if transport is not None:
        kwargs["transport"] = transport

    return httpx.AsyncClient(**kwargs)
