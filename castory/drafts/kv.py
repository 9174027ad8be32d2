"""Client-local key-value stores for serialized drafts.

Responsibilities:
- Provide string-keyed get/set/remove of serialized snapshots.
- Enforce a storage quota the way browser-local storage does.
- Report every failure as `PersistenceError`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from ..errors import PersistenceError


class KeyValueStore(Protocol):
    """Protocol for a single-slot-per-key persistent store."""

    def get(self, key: str) -> str | None:
        """Return the stored value for `key`, or `None` when absent."""

    def set(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value."""

    def remove(self, key: str) -> None:
        """Delete `key`; deleting a missing key is a no-op."""


class MemoryKeyValueStore:
    """In-process store, mainly for tests and ephemeral sessions."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.entries: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self.entries.get(key)

    def set(self, key: str, value: str) -> None:
        _check_quota(key, value, self.quota_bytes)
        self.entries[key] = value

    def remove(self, key: str) -> None:
        self.entries.pop(key, None)


class FileKeyValueStore:
    """Directory-backed store writing one UTF-8 file per key."""

    def __init__(self, root: Path, quota_bytes: int | None = None) -> None:
        self.root = root
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        return self.root / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Cannot read `{key}`: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        _check_quota(key, value, self.quota_bytes)
        path = self._path(key)
        staging = path.with_name(f"{path.name}.tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            staging.write_text(value, encoding="utf-8")
            staging.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write `{key}`: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot remove `{key}`: {exc}") from exc


def _check_quota(key: str, value: str, quota_bytes: int | None) -> None:
    if quota_bytes is None:
        return
    size = len(key.encode("utf-8")) + len(value.encode("utf-8"))
    if size > quota_bytes:
        raise PersistenceError(f"Quota exceeded writing `{key}` ({size} > {quota_bytes} bytes).")
