"""Client-local draft persistence."""

from .kv import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .scheduler import Scheduler, ThreadingScheduler
from .store import DraftPersistence, read_draft, use_draft_persistence

__all__ = [
    "DraftPersistence",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "Scheduler",
    "ThreadingScheduler",
    "read_draft",
    "use_draft_persistence",
]
