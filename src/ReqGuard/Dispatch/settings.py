# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.Dispatch.settings",
#   "purpose": "Environment-backed settings for request dispatch",
#   "sections": [
#     {"id": "dispatch-settings", "name": "DispatchSettings", "anchor": "class-dispatch-settings", "kind": "class"},
#     {"id": "get-settings", "name": "get_settings", "anchor": "function-get-settings", "kind": "function"},
#     {"id": "reset-settings", "name": "reset_settings", "anchor": "function-reset-settings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Environment-backed settings for request dispatch.

Timeouts and transport knobs default to :mod:`ReqGuard.Dispatch.policy` and can be
overridden through ``REQGUARD_DISPATCH_*`` environment variables, e.g.::

    REQGUARD_DISPATCH_FORM_TIMEOUT=30
    REQGUARD_DISPATCH_REJECT_EMPTY_FORM_BODY=true
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ReqGuard.Dispatch import policy

if TYPE_CHECKING:
    from ReqGuard.Dispatch.encoding import BodyEncoding

logger = logging.getLogger(__name__)

__all__ = ["DispatchSettings", "get_settings", "reset_settings"]


class DispatchSettings(BaseSettings):
    """Per-process configuration for the request dispatcher."""

    model_config = SettingsConfigDict(
        env_prefix="REQGUARD_DISPATCH_",
        case_sensitive=False,
        extra="ignore",
    )

    form_timeout: float = Field(
        policy.FORM_TIMEOUT, description="Timeout for form-urlencoded requests (seconds)", gt=0
    )
    json_timeout: float = Field(
        policy.JSON_TIMEOUT, description="Timeout for JSON requests (seconds)", gt=0
    )
    xml_timeout: float = Field(
        policy.XML_TIMEOUT, description="Timeout for raw XML requests (seconds)", gt=0
    )
    verify_tls: bool = Field(
        policy.TLS_VERIFY_ENABLED, description="Verify server certificates"
    )
    follow_redirects: bool = Field(
        policy.FOLLOW_REDIRECTS, description="Follow 3xx responses automatically"
    )
    max_redirects: int = Field(
        policy.MAX_REDIRECTS, description="Redirect hop limit", ge=0
    )
    reject_empty_form_body: bool = Field(
        False, description="Reject form requests whose body mapping is empty"
    )
    user_agent: Optional[str] = Field(
        None, description="User-Agent override (None keeps the httpx default)"
    )

    @field_validator("user_agent")
    @classmethod
    def blank_user_agent_is_none(cls, value: Optional[str]) -> Optional[str]:
        """Treat an empty User-Agent override as unset."""
        if value is not None and not value.strip():
            return None
        return value

    def timeout_for(self, encoding: "BodyEncoding") -> float:
        """Return the overall timeout budget for ``encoding``.

        Reads the ``<encoding.value>_timeout`` field and falls back to the
        variant's built-in default when no such field exists.
        """
        return getattr(self, f"{encoding.value}_timeout", encoding.default_timeout)


_settings: DispatchSettings | None = None
_settings_lock = threading.Lock()


def get_settings() -> DispatchSettings:
    """Return the process-wide settings, loading them from the environment once."""
    global _settings

    if _settings is not None:
        return _settings
    with _settings_lock:
        if _settings is None:
            _settings = DispatchSettings()
            logger.debug(
                "Dispatch settings loaded",
                extra={
                    "form_timeout": _settings.form_timeout,
                    "json_timeout": _settings.json_timeout,
                    "xml_timeout": _settings.xml_timeout,
                },
            )
        return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings

    with _settings_lock:
        _settings = None
