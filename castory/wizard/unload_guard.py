"""Advisory "confirm before leaving" guard.

Responsibilities:
- Count outstanding generation and publish calls for one session.
- Install a leave-confirmation hook while any call is outstanding and remove
  it once the last call settles.

The guard is best-effort: the host decides whether the hook is honored.
"""

from __future__ import annotations

from contextlib import contextmanager
import signal
from threading import Lock, current_thread, main_thread
from typing import Any, Iterator, Protocol

from loguru import logger


class UnloadHook(Protocol):
    """Host-specific leave confirmation."""

    def install(self) -> None:
        """Start asking for confirmation before leaving."""

    def uninstall(self) -> None:
        """Stop asking for confirmation."""


class InterruptConfirmHook:
    """Turn the first Ctrl+C during outstanding work into a warning.

    A second interrupt falls through to the previous handler.
    """

    def __init__(self) -> None:
        self._previous: Any = None
        self._installed = False
        self._warned = False

    def install(self) -> None:
        if self._installed or current_thread() is not main_thread():
            return
        self._previous = signal.getsignal(signal.SIGINT)
        self._warned = False
        signal.signal(signal.SIGINT, self._handle)
        self._installed = True

    def uninstall(self) -> None:
        if not self._installed or current_thread() is not main_thread():
            return
        signal.signal(signal.SIGINT, self._previous)
        self._installed = False

    def _handle(self, signum: int, frame: Any) -> None:
        if not self._warned:
            self._warned = True
            logger.warning("generation still running; press Ctrl+C again to leave anyway")
            return
        previous = self._previous
        self.uninstall()
        if callable(previous):
            previous(signum, frame)
        else:
            raise KeyboardInterrupt


class UnloadGuard:
    """Reference-counted owner of one `UnloadHook`."""

    def __init__(self, hook: UnloadHook | None = None) -> None:
        self.hook = hook
        self._outstanding = 0
        self._lock = Lock()

    @property
    def outstanding(self) -> int:
        return self._outstanding

    @property
    def active(self) -> bool:
        return self._outstanding > 0

    def begin(self) -> None:
        with self._lock:
            self._outstanding += 1
            if self._outstanding == 1 and self.hook is not None:
                self.hook.install()

    def end(self) -> None:
        with self._lock:
            if self._outstanding == 0:
                return
            self._outstanding -= 1
            if self._outstanding == 0 and self.hook is not None:
                self.hook.uninstall()

    @contextmanager
    def guard(self) -> Iterator[None]:
        """Hold the guard for the duration of one outstanding call."""

        self.begin()
        try:
            yield
        finally:
            self.end()
