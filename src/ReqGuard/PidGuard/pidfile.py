# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.PidGuard.pidfile",
#   "purpose": "Read-check-write pid file guard",
#   "sections": [
#     {"id": "pid-file", "name": "PidFile", "anchor": "class-pid-file", "kind": "class"},
#     {"id": "is-process-running", "name": "is_process_running", "anchor": "function-is-process-running", "kind": "function"},
#     {"id": "write-pid-file", "name": "write_pid_file", "anchor": "function-write-pid-file", "kind": "function"},
#     {"id": "remove-pid-file", "name": "remove_pid_file", "anchor": "function-remove-pid-file", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Read-check-write pid file guard.

:func:`write_pid_file` refuses to start a second instance while the pid recorded
at ``path`` still belongs to a live process, and otherwise records the current
pid there.  The check and the write are separate steps: two processes starting at
the same moment can both pass the check.  Use
:func:`ReqGuard.PidGuard.locks.acquire_pid_lock` when that window matters.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional, Union

import psutil

from ReqGuard.PidGuard.errors import AlreadyRunningError, PidFileWriteError
from ReqGuard.PidGuard.settings import DEFAULT_FILE_MODE, PidGuardSettings, get_settings

__all__ = ["PidFile", "is_process_running", "write_pid_file", "remove_pid_file"]

logger = logging.getLogger(__name__)

_PID_PATTERN = re.compile(r"\+?[0-9]+")

PathLike = Union[str, os.PathLike]


class PidFile:
    """Narrow read/write access to the pid stored at ``path``."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path).expanduser()

    def __repr__(self) -> str:
        return f"PidFile({str(self.path)!r})"

    def read_pid(self) -> Optional[int]:
        """Return the stored pid, or ``None`` when absent, unreadable, or corrupt.

        Surrounding whitespace and a leading ``+`` are tolerated; anything else that
        is not a positive decimal integer counts as corrupt.
        """
        try:
            raw = self.path.read_bytes()
        except OSError:
            return None
        try:
            text = raw.decode("ascii").strip()
        except UnicodeDecodeError:
            return None
        if not _PID_PATTERN.fullmatch(text):
            return None
        pid = int(text)
        # pid 0 addresses our own process group under signal zero.
        return pid if pid > 0 else None

    def write_pid(self, pid: int, *, mode: int = DEFAULT_FILE_MODE) -> None:
        """Write ``pid`` as decimal text, creating or truncating the file.

        Raises:
            PidFileWriteError: If the file cannot be opened or written.
        """
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "w", encoding="ascii") as handle:
                handle.write(str(pid))
        except OSError as exc:
            raise PidFileWriteError(f"write pid file: {exc}", path=self.path) from exc

    def remove(self) -> None:
        """Delete the pid file if it exists."""
        self.path.unlink(missing_ok=True)


def is_process_running(pid: int) -> bool:
    """Return True when ``pid`` names a live process this user may signal.

    The process is first looked up through psutil, then probed with signal zero on
    POSIX.  A lookup miss, a probe failure, or a process owned by another user all
    count as not running.
    """
    if pid <= 0:
        return False
    try:
        process = psutil.Process(pid)
    except psutil.Error:
        return False

    if os.name != "posix":
        # No signal zero here; psutil's liveness check stands in for the probe.
        try:
            return process.is_running()
        except psutil.Error:
            return False

    try:
        os.kill(pid, 0)
    except OSError:
        return False
    return True


def write_pid_file(path: PathLike, *, settings: Optional[PidGuardSettings] = None) -> int:
    """Record the current pid at ``path`` unless a live process already owns it.

    Args:
        path: Pid file location.
        settings: Guard settings; the process-wide settings when omitted.

    Returns:
        The pid that was written (``os.getpid()``).

    Raises:
        AlreadyRunningError: If the stored pid belongs to a running process.
        PidFileWriteError: If the pid file cannot be written.

    Examples:
        >>> write_pid_file("/tmp/example.pid")  # doctest: +SKIP
        4242
    """
    settings = settings or get_settings()
    pid_file = PidFile(path)

    existing = pid_file.read_pid()
    if existing is not None and is_process_running(existing):
        raise AlreadyRunningError(existing, pid_file.path)

    current = os.getpid()
    pid_file.write_pid(current, mode=settings.file_mode)
    logger.debug(
        "pid file written",
        extra={"path": str(pid_file.path), "pid": current, "replaced_pid": existing},
    )
    return current


def remove_pid_file(path: PathLike) -> bool:
    """Delete the pid file at ``path`` if it records the current process.

    Returns:
        True when the file was removed, False when it was absent or names
        another process.
    """
    pid_file = PidFile(path)
    if pid_file.read_pid() != os.getpid():
        return False
    pid_file.remove()
    logger.debug("pid file removed", extra={"path": str(pid_file.path)})
    return True
