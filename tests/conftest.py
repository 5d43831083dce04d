# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "reset-settings-caches",
#       "name": "reset_settings_caches",
#       "anchor": "function-reset-settings-caches",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

Puts ``src`` and the repository root on ``sys.path`` so the suite runs from a
plain checkout, re-exports the HTTP mocking fixtures, and isolates every test
from ``REQGUARD_*`` environment overrides and cached settings.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# --- Globals ---

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
for _path in (SRC, ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from tests.fixtures.http_mocking import (  # noqa: E402,F401
    dispatch_settings,
    dispatcher,
    make_transport,
    no_proxy_env,
    recording_transport,
    refused_url,
)
from tests.fixtures.loopback_server import slow_http_server  # noqa: E402,F401

from ReqGuard.Dispatch import settings as dispatch_settings_module  # noqa: E402
from ReqGuard.PidGuard import settings as pidguard_settings_module  # noqa: E402

_ENV_PREFIX = "REQGUARD_"


@pytest.fixture(autouse=True)
def reset_settings_caches(monkeypatch: pytest.MonkeyPatch):
    """Clear ``REQGUARD_*`` variables and cached settings around each test."""
    for name in list(os.environ):
        if name.upper().startswith(_ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    dispatch_settings_module.reset_settings()
    pidguard_settings_module.reset_settings()
    yield
    dispatch_settings_module.reset_settings()
    pidguard_settings_module.reset_settings()
