"""Exceptions raised by the pid-file guard.

Only two outcomes are reportable: another live process owns the pid file, or the
pid file could not be written.  Read, parse, and process-lookup failures are
treated as "no previous instance" and never surface.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

__all__ = ["PidGuardError", "AlreadyRunningError", "PidFileWriteError"]


class PidGuardError(RuntimeError):
    """Base exception for pid-file guard failures."""

    def __init__(self, message: str, *, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class AlreadyRunningError(PidGuardError):
    """Raised when the pid file names a process that is still alive."""

    def __init__(self, pid: Optional[int], path: Optional[Union[str, Path]] = None) -> None:
        if pid is None:
            message = "pid file is locked by another process"
        else:
            message = f"pid already running: {pid}"
        super().__init__(message, path=path)
        self.pid = pid


class PidFileWriteError(PidGuardError):
    """Raised when the current pid could not be written to the pid file."""
