# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.PidGuard.locks",
#   "purpose": "Advisory-lock backed single-instance guard",
#   "sections": [
#     {"id": "pid-lock", "name": "PidLock", "anchor": "class-pid-lock", "kind": "class"},
#     {"id": "acquire-pid-lock", "name": "acquire_pid_lock", "anchor": "function-acquire-pid-lock", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Advisory-lock backed single-instance guard.

Responsibilities
----------------
- Hold an exclusive :mod:`filelock` lock on ``<pidfile><suffix>`` for as long as
  the owning process runs, so the read-check-write sequence of
  :func:`~ReqGuard.PidGuard.pidfile.write_pid_file` cannot interleave with
  another instance.
- Write the pid file while the lock is held and remove it again on release.

Design Notes
------------
- The lock is not thread-local: any thread of the owning process may release it.
- A lock held elsewhere surfaces as :class:`AlreadyRunningError`, carrying the pid
  from the pid file when it is readable.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from filelock import FileLock, Timeout

from ReqGuard.PidGuard.errors import AlreadyRunningError
from ReqGuard.PidGuard.pidfile import PathLike, PidFile, remove_pid_file, write_pid_file
from ReqGuard.PidGuard.settings import PidGuardSettings, get_settings

__all__ = ["PidLock", "acquire_pid_lock"]

LOGGER = logging.getLogger(__name__)

_POLL_INTERVAL = 0.05  # seconds


class PidLock:
    """Pid file guarded by an exclusive advisory lock.

    Args:
        path: Pid file location. The lock file sits beside it.
        timeout: Seconds to wait for the lock; the settings value when omitted.
        settings: Guard settings; the process-wide settings when omitted.
    """

    def __init__(
        self,
        path: PathLike,
        *,
        timeout: Optional[float] = None,
        settings: Optional[PidGuardSettings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.path = Path(path).expanduser()
        self.lock_path = self.path.with_name(self.path.name + self._settings.lock_suffix)
        self.timeout = self._settings.lock_timeout if timeout is None else float(timeout)
        self.pid: Optional[int] = None
        self._lock = FileLock(
            str(self.lock_path),
            timeout=self.timeout,
            mode=self._settings.file_mode,
            thread_local=False,
        )

    @property
    def is_locked(self) -> bool:
        return self._lock.is_locked

    def acquire(self) -> "PidLock":
        """Take the advisory lock, then write the pid file under it.

        Raises:
            AlreadyRunningError: If another process holds the lock, or the pid
                file names a live process despite the lock being free.
            PidFileWriteError: If the pid file cannot be written.
        """
        start = time.monotonic()
        try:
            self._lock.acquire(timeout=self.timeout, poll_interval=_POLL_INTERVAL)
        except Timeout as exc:
            holder = PidFile(self.path).read_pid()
            LOGGER.debug(
                "pid-lock-busy lock_file=%s holder=%s wait_ms=%.3f",
                self.lock_path,
                holder,
                (time.monotonic() - start) * 1000.0,
            )
            raise AlreadyRunningError(holder, self.path) from exc

        try:
            self.pid = write_pid_file(self.path, settings=self._settings)
        except BaseException:
            self._lock.release()
            raise
        LOGGER.debug("pid-lock-acquired lock_file=%s pid=%s", self.lock_path, self.pid)
        return self

    def release(self) -> None:
        """Remove our pid file and drop the lock. Safe to call more than once."""
        if not self._lock.is_locked:
            return
        try:
            remove_pid_file(self.path)
        finally:
            self._lock.release()
            self.pid = None
            LOGGER.debug("pid-lock-released lock_file=%s", self.lock_path)

    def __enter__(self) -> "PidLock":
        if not self._lock.is_locked:
            self.acquire()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()


def acquire_pid_lock(
    path: PathLike,
    *,
    timeout: Optional[float] = None,
    settings: Optional[PidGuardSettings] = None,
) -> PidLock:
    """Acquire a :class:`PidLock` on ``path`` and return it, already held.

    Examples:
        >>> with acquire_pid_lock("/run/worker.pid"):  # doctest: +SKIP
        ...     serve_forever()
    """
    return PidLock(path, timeout=timeout, settings=settings).acquire()
