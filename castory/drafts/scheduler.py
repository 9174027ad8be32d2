"""Delayed-task scheduling used by debounced draft persistence."""

from __future__ import annotations

import threading
from typing import Callable, Protocol


class ScheduledTask(Protocol):
    """Handle for a pending delayed callback."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not started yet."""


class Scheduler(Protocol):
    """Protocol for arming delayed callbacks."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        """Run `callback` once after `delay_seconds`."""


class ThreadingScheduler:
    """Scheduler backed by daemon `threading.Timer` instances."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        timer = threading.Timer(delay_seconds, callback)
        timer.daemon = True
        timer.start()
        return timer
