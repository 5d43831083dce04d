# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.Dispatch.client",
#   "purpose": "Per-call HTTPX client factory.",
#   "sections": [
#     {
#       "id": "create-http-client",
#       "name": "create_http_client",
#       "anchor": "function-create-http-client",
#       "kind": "function"
#     },
#     {
#       "id": "create-ssl-context",
#       "name": "_create_ssl_context",
#       "anchor": "function-create-ssl-context",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Per-call HTTPX client factory.

The dispatcher keeps no shared client: every call builds one here, uses it inside
a ``with`` block, and closes it before returning, so connections never outlive
the call that opened them.

Key design:
- **Timeout budget**: the client default applies the variant timeout to connect,
  read, write and pool acquisition alike. The dispatcher narrows it per request
  to the time left before its overall deadline.
- **TLS**: system defaults plus the certifi bundle; verification can only be
  disabled through settings.
- **Transport injection**: tests pass an ``httpx.MockTransport``; production code
  leaves ``transport`` unset.

Example:
    >>> with create_http_client(timeout=120.0) as client:
    ...     response = client.get("https://example.org/")
"""

import logging
import ssl
from typing import Optional

import certifi
import httpx

from ReqGuard.Dispatch.settings import DispatchSettings, get_settings

logger = logging.getLogger(__name__)


def create_http_client(
    *,
    timeout: float,
    settings: Optional[DispatchSettings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create an HTTPX client for a single dispatch call.

    Args:
        timeout: Default per-phase budget in seconds.
        settings: Dispatch settings; the process-wide settings when omitted.
        transport: Optional transport override (tests use ``httpx.MockTransport``).

    Returns:
        A configured ``httpx.Client``. Callers own it and must close it.
    """
    settings = settings or get_settings()
    ssl_ctx = _create_ssl_context(settings.verify_tls)

    headers = {}
    if settings.user_agent:
        headers["User-Agent"] = settings.user_agent

    client = httpx.Client(
        transport=transport,
        timeout=httpx.Timeout(timeout),
        follow_redirects=settings.follow_redirects,
        max_redirects=settings.max_redirects,
        verify=ssl_ctx,
        headers=headers,
    )

    logger.debug(
        "HTTPX client created",
        extra={
            "timeout": timeout,
            "follow_redirects": settings.follow_redirects,
            "mock_transport": transport is not None,
        },
    )
    return client


def _create_ssl_context(verify: bool) -> ssl.SSLContext:
    """Create an SSL context with secure defaults.

    Uses system certificates plus the certifi bundle.  With ``verify`` off the
    context accepts any certificate (development only).
    """
    if not verify:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        logger.warning("TLS verification DISABLED (development only!)")
        return ctx

    ctx = ssl.create_default_context(cafile=certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


__all__ = ["create_http_client"]
