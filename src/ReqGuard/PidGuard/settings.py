"""Environment-backed settings for the pid-file guard (``REQGUARD_PIDGUARD_*``)."""

from __future__ import annotations

import logging
import threading
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

__all__ = ["PidGuardSettings", "get_settings", "reset_settings", "DEFAULT_FILE_MODE"]

DEFAULT_FILE_MODE = 0o664


class PidGuardSettings(BaseSettings):
    """Pid file permissions and advisory-lock behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="REQGUARD_PIDGUARD_",
        case_sensitive=False,
        extra="ignore",
    )

    file_mode: int = Field(
        DEFAULT_FILE_MODE, description="Permission bits for new pid and lock files"
    )
    lock_suffix: str = Field(".lock", description="Suffix of the advisory lock file")
    lock_timeout: float = Field(
        0.0, description="Seconds to wait for the advisory lock (0 = single attempt)", ge=0
    )

    @field_validator("file_mode", mode="before")
    @classmethod
    def parse_mode(cls, value: Any) -> Any:
        """Accept ``"0o664"``, ``"664"`` (octal), or a plain integer."""
        if isinstance(value, str):
            raw = value.strip()
            if raw.isdigit():
                return int(raw, 8)
            return int(raw, 0)
        return value

    @field_validator("file_mode")
    @classmethod
    def validate_mode(cls, value: int) -> int:
        if not 0 <= value <= 0o777:
            raise ValueError(f"file_mode must be within 0o000-0o777, got {oct(value)}")
        return value

    @field_validator("lock_suffix")
    @classmethod
    def validate_suffix(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError(f"lock_suffix must be a plain file suffix, got {value!r}")
        return value


_settings: PidGuardSettings | None = None
_settings_lock = threading.Lock()


def get_settings() -> PidGuardSettings:
    """Return the process-wide pid guard settings."""
    global _settings

    if _settings is not None:
        return _settings
    with _settings_lock:
        if _settings is None:
            _settings = PidGuardSettings()
        return _settings


def reset_settings() -> None:
    """Drop the cached settings (test isolation)."""
    global _settings

    with _settings_lock:
        _settings = None
