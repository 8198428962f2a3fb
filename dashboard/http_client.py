"""Shared HTTP client - connection pooling for all backend requests.

One module-level httpx.AsyncClient instance, created lazily so tests and
the CLI can swap settings before first use:
  - get_http(): pooled client, no redirects, settings.request_timeout

Per-request timeout overrides via client.get(url, timeout=15).

Usage:
    from dashboard.http_client import get_http
    resp = await get_http().get(url, params=params)
"""

import httpx

from .config import settings

_LIMITS = httpx.Limits(
    max_connections=20,
    max_keepalive_connections=10,
    keepalive_expiry=30,
)

_http: httpx.AsyncClient | None = None


def build_client(**kwargs) -> httpx.AsyncClient:
    """New AsyncClient with the dashboard defaults. kwargs override them."""
    options = {
        "timeout": settings.request_timeout,
        "limits": _LIMITS,
        "follow_redirects": False,
        "headers": {"Content-Type": "application/json"},
    }
    options.update(kwargs)
    return httpx.AsyncClient(**options)


def get_http() -> httpx.AsyncClient:
    global _http
    if _http is None or _http.is_closed:
        _http = build_client()
    return _http


async def close_clients():
    """Shut down the shared client. Call from the composition root on exit."""
    global _http
    if _http is None:
        return
    try:
        await _http.aclose()
    except RuntimeError:
        pass
    _http = None
