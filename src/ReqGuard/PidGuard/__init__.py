"""Single-instance pid file guard.

Two flavours share one pid file format (the decimal pid, nothing else):

- :func:`write_pid_file`: read the stored pid, probe it, and write our own pid
  if the previous owner is gone. Best effort; concurrent starts can race.
- :func:`acquire_pid_lock`: the same guard run under an exclusive advisory lock
  that is held until :meth:`PidLock.release`.

Example:
    >>> from ReqGuard.PidGuard import AlreadyRunningError, write_pid_file
    >>> try:
    ...     write_pid_file("/var/run/worker.pid")
    ... except AlreadyRunningError as exc:
    ...     raise SystemExit(str(exc))  # doctest: +SKIP
"""

from ReqGuard.PidGuard.errors import AlreadyRunningError, PidFileWriteError, PidGuardError
from ReqGuard.PidGuard.locks import PidLock, acquire_pid_lock
from ReqGuard.PidGuard.pidfile import (
    PidFile,
    is_process_running,
    remove_pid_file,
    write_pid_file,
)
from ReqGuard.PidGuard.settings import PidGuardSettings, get_settings, reset_settings

__all__ = [
    "write_pid_file",
    "remove_pid_file",
    "acquire_pid_lock",
    "is_process_running",
    "PidFile",
    "PidLock",
    "PidGuardSettings",
    "get_settings",
    "reset_settings",
    "PidGuardError",
    "AlreadyRunningError",
    "PidFileWriteError",
]
