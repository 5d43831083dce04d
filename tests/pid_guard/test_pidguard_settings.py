"""Tests for pid guard settings."""

import pytest
from pydantic import ValidationError

from ReqGuard.PidGuard import PidGuardSettings, get_settings, reset_settings


def test_defaults():
    settings = PidGuardSettings()

    assert settings.file_mode == 0o664
    assert settings.lock_suffix == ".lock"
    assert settings.lock_timeout == 0.0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("0o600", 0o600), ("600", 0o600), ("0644", 0o644), ("0x1a4", 0o644)],
)
def test_file_mode_from_environment(monkeypatch, raw, expected):
    monkeypatch.setenv("REQGUARD_PIDGUARD_FILE_MODE", raw)

    assert PidGuardSettings().file_mode == expected


@pytest.mark.parametrize("mode", [-1, 0o1000])
def test_file_mode_out_of_range(mode):
    with pytest.raises(ValidationError):
        PidGuardSettings(file_mode=mode)


@pytest.mark.parametrize("suffix", ["", "/lock", "..\\lock"])
def test_invalid_lock_suffix(suffix):
    with pytest.raises(ValidationError):
        PidGuardSettings(lock_suffix=suffix)


def test_negative_lock_timeout_rejected():
    with pytest.raises(ValidationError):
        PidGuardSettings(lock_timeout=-1)


def test_cached_until_reset(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("REQGUARD_PIDGUARD_LOCK_SUFFIX", ".guard")

    assert get_settings() is first

    reset_settings()
    assert get_settings().lock_suffix == ".guard"
