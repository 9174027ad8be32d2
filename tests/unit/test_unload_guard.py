"""Unit tests for the reference-counted leave-confirmation guard."""

from __future__ import annotations

import signal
from typing import Any

import pytest

from castory.wizard import InterruptConfirmHook, UnloadGuard


class _RecordingHook:
    """Hook double counting install and uninstall calls."""

    def __init__(self) -> None:
        self.events: list[str] = []

    def install(self) -> None:
        self.events.append("install")

    def uninstall(self) -> None:
        self.events.append("uninstall")


def test_hook_installed_once_for_overlapping_calls() -> None:
    """Overlapping calls share one installation, removed after the last settles."""

    hook = _RecordingHook()
    guard = UnloadGuard(hook)

    guard.begin()
    guard.begin()
    assert guard.outstanding == 2
    guard.end()
    assert guard.active is True
    guard.end()

    assert guard.active is False
    assert hook.events == ["install", "uninstall"]


def test_unbalanced_end_is_ignored() -> None:
    """Ending with nothing outstanding leaves the count at zero."""

    hook = _RecordingHook()
    guard = UnloadGuard(hook)

    guard.end()

    assert guard.outstanding == 0
    assert hook.events == []


def test_guard_context_releases_on_failure() -> None:
    """A failing call still releases the guard."""

    hook = _RecordingHook()
    guard = UnloadGuard(hook)

    with pytest.raises(RuntimeError):
        with guard.guard():
            assert guard.active
            raise RuntimeError("boom")

    assert guard.active is False
    assert hook.events == ["install", "uninstall"]


def test_interrupt_hook_warns_first_then_defers_to_previous_handler() -> None:
    """The first Ctrl+C is absorbed; the second reaches the previous handler."""

    received: list[int] = []

    def _previous(signum: int, frame: Any) -> None:
        received.append(signum)

    original = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, _previous)
    try:
        hook = InterruptConfirmHook()
        hook.install()
        handler = signal.getsignal(signal.SIGINT)
        assert handler is not _previous

        handler(signal.SIGINT, None)
        assert received == []

        handler(signal.SIGINT, None)
        assert received == [signal.SIGINT]
        assert signal.getsignal(signal.SIGINT) is _previous
    finally:
        signal.signal(signal.SIGINT, original)


def test_interrupt_hook_uninstall_restores_previous_handler() -> None:
    """Uninstalling puts back whatever handler was active before."""

    original = signal.getsignal(signal.SIGINT)
    try:
        hook = InterruptConfirmHook()
        hook.install()
        hook.uninstall()
        hook.uninstall()

        assert signal.getsignal(signal.SIGINT) is original
    finally:
        signal.signal(signal.SIGINT, original)
