"""Debounced, quota-safe draft persistence.

Responsibilities:
- Read a previously saved draft once per session start.
- Coalesce state changes and write only after a quiet debounce window.
- Hold all writes until an activation delay has passed, so hydrating a
  session from its draft never writes placeholder values over that draft.
- Swallow every store failure; authoring continues in memory.

The store is format-agnostic: callers pass the already filtered projection
they want persisted.
"""

from __future__ import annotations

from datetime import datetime
import json
from threading import Lock
from typing import Any, Callable, Mapping

from loguru import logger

from ..errors import PersistenceError
from .kv import KeyValueStore
from .scheduler import ScheduledTask, Scheduler, ThreadingScheduler

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_ACTIVATION_DELAY_SECONDS = 0.75


def read_draft(store: KeyValueStore, key: str) -> dict[str, Any] | None:
    """Return the stored draft for `key`, or `None` when absent or unreadable."""

    try:
        raw = store.get(key)
    except PersistenceError as exc:
        logger.debug("draft read failed for {key}: {error}", key=key, error=str(exc))
        return None
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("ignoring unparseable draft for {key}", key=key)
        return None
    if not isinstance(payload, dict):
        return None
    return payload


class DraftPersistence:
    """Continuously persist the latest state projection for one draft key."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        scheduler: Scheduler | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        activation_delay_seconds: float = DEFAULT_ACTIVATION_DELAY_SECONDS,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        if activation_delay_seconds <= debounce_seconds:
            raise ValueError("Activation delay must be longer than the debounce window.")
        self.store = store
        self.key = key
        self.scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.debounce_seconds = debounce_seconds
        self.activation_delay_seconds = activation_delay_seconds
        self._now = now
        self._lock = Lock()
        self._active = False
        self._closed = False
        self._latest: Mapping[str, Any] | None = None
        self._debounce_task: ScheduledTask | None = None
        self._activation_task: ScheduledTask | None = None
        self._last_saved: datetime | None = None

    @property
    def last_saved(self) -> datetime | None:
        """Timestamp of the last successful write, or `None`."""

        return self._last_saved

    @property
    def active(self) -> bool:
        """Whether the activation delay has elapsed."""

        return self._active

    def start(self) -> None:
        """Arm the activation delay; call once when the session starts."""

        with self._lock:
            if self._activation_task is None and not self._closed:
                self._activation_task = self.scheduler.call_later(
                    self.activation_delay_seconds, self._activate
                )

    def update(self, state: Mapping[str, Any]) -> None:
        """Record a state change and re-arm the debounce window."""

        with self._lock:
            if self._closed:
                return
            self._latest = dict(state)
            if self._debounce_task is not None:
                self._debounce_task.cancel()
            self._debounce_task = self.scheduler.call_later(
                self.debounce_seconds, self._on_debounce
            )

    def discard(self) -> None:
        """Remove the persisted draft and forget pending writes."""

        with self._lock:
            if self._debounce_task is not None:
                self._debounce_task.cancel()
                self._debounce_task = None
            self._latest = None
            self._last_saved = None
            try:
                self.store.remove(self.key)
            except PersistenceError as exc:
                logger.debug("draft discard failed for {key}: {error}", key=self.key, error=str(exc))

    def flush(self) -> None:
        """Write the latest state now, skipping the debounce; no-op before activation."""

        with self._lock:
            if self._closed or not self._active or self._latest is None:
                return
            if self._debounce_task is not None:
                self._debounce_task.cancel()
                self._debounce_task = None
            self._write(self._latest)

    def close(self) -> None:
        """Cancel pending timers; no further writes happen."""

        with self._lock:
            self._closed = True
            for task in (self._debounce_task, self._activation_task):
                if task is not None:
                    task.cancel()
            self._debounce_task = None

    def _activate(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._active = True
            self._activation_task = None
            if self._latest is not None and self._debounce_task is None:
                self._debounce_task = self.scheduler.call_later(
                    self.debounce_seconds, self._on_debounce
                )

    def _on_debounce(self) -> None:
        with self._lock:
            self._debounce_task = None
            if self._closed or self._latest is None:
                return
            if self._active:
                self._write(self._latest)

    def _write(self, state: Mapping[str, Any]) -> None:
        """Serialize and store `state`; failures leave the previous draft in place."""

        try:
            serialized = json.dumps(state, ensure_ascii=False, sort_keys=True)
            self.store.set(self.key, serialized)
        except (PersistenceError, TypeError, ValueError) as exc:
            logger.warning("draft write skipped for {key}: {error}", key=self.key, error=str(exc))
            return
        self._last_saved = self._now()


def use_draft_persistence(
    store: KeyValueStore,
    key: str,
    state: Mapping[str, Any],
    scheduler: Scheduler | None = None,
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    activation_delay_seconds: float = DEFAULT_ACTIVATION_DELAY_SECONDS,
    now: Callable[[], datetime] = datetime.now,
) -> DraftPersistence:
    """Start persisting `state` under `key` and return the running persistence."""

    persistence = DraftPersistence(
        store,
        key,
        scheduler=scheduler,
        debounce_seconds=debounce_seconds,
        activation_delay_seconds=activation_delay_seconds,
        now=now,
    )
    persistence.start()
    persistence.update(state)
    return persistence
