"""
Shared HTTP client utilities.

Centralizes httpx client creation with sensible defaults, connection pooling,
timeouts, and a consistent User-Agent. Use these helpers instead of creating
ad-hoc clients across the codebase.
"""

from __future__ import annotations

from typing import Optional

import httpx

from chance_toolkit.shared.constants import GlobalConstants

_sync_client: Optional[httpx.Client] = None


def _build_limits() -> httpx.Limits:
    return httpx.Limits(max_keepalive_connections=10, max_connections=20)


def _build_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        GlobalConstants.HTTP_TIMEOUT,
        connect=GlobalConstants.HTTP_CONNECT_TIMEOUT,
    )


def _default_headers() -> dict:
    return {
        "User-Agent": GlobalConstants.USER_AGENT,
        "Accept": "application/json",
    }


def build_client(transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """Build a new client with the toolkit defaults (transport for tests)."""
    return httpx.Client(
        timeout=_build_timeout(),
        limits=_build_limits(),
        headers=_default_headers(),
        transport=transport,
    )


def get_client() -> httpx.Client:
    """Get a shared synchronous httpx client."""
    global _sync_client
    if _sync_client is None:
        _sync_client = build_client()
    return _sync_client


def close_client() -> None:
    global _sync_client
    if _sync_client is not None:
        _sync_client.close()
        _sync_client = None
