"""Blob storage collaborators for generated assets.

Responsibilities:
- Hand out one-time upload targets, accept binary uploads, and resolve
  durable URLs from storage identifiers.
- Provide an HTTP client for a hosted file service and a filesystem store
  for local authoring.
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Any, Protocol
import uuid

import requests

from ..errors import StorageError


class BlobStorage(Protocol):
    """Protocol for two-phase blob upload and URL resolution."""

    def request_upload_target(self) -> str:
        """Return a one-time endpoint accepting a single upload."""

    def upload(self, target: str, data: bytes, content_type: str) -> str:
        """Upload `data` to `target` and return its storage identifier."""

    def resolve_url(self, storage_id: str) -> str | None:
        """Return the durable URL for a stored blob, or `None` when unknown."""


class HttpBlobStorage:
    """Client for a hosted file service exposing upload-URL and URL-lookup routes.

    Routes:
        `POST {base_url}/upload-url` returns `{"uploadUrl": ...}`.
        `POST <uploadUrl>` with the raw body returns `{"storageId": ...}`.
        `GET {base_url}/files/<storageId>/url` returns `{"url": ... | null}`.
    """

    def __init__(
        self,
        base_url: str,
        auth_token: str | None = None,
        timeout_seconds: float = 120.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout_seconds = timeout_seconds

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        if content_type is not None:
            headers["Content-Type"] = content_type
        return headers

    def request_upload_target(self) -> str:
        payload = self._request_json("post", f"{self.base_url}/upload-url", "request upload URL")
        return self._required_string(payload, "uploadUrl", "upload URL response")

    def upload(self, target: str, data: bytes, content_type: str) -> str:
        payload = self._request_json(
            "post",
            target,
            "upload asset",
            data=data,
            content_type=content_type,
        )
        return self._required_string(payload, "storageId", "upload response")

    def resolve_url(self, storage_id: str) -> str | None:
        payload = self._request_json(
            "get",
            f"{self.base_url}/files/{storage_id}/url",
            "resolve asset URL",
        )
        url = payload.get("url")
        if isinstance(url, str) and url.strip():
            return url.strip()
        return None

    def _request_json(
        self,
        method: str,
        url: str,
        action: str,
        data: bytes | None = None,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        """Send one request and decode its JSON object body."""

        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(content_type),
                data=data,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else 0
            raise StorageError(
                stage="storage",
                detail=f"Failed to {action} (HTTP {status}).",
            ) from exc
        except requests.RequestException as exc:
            raise StorageError(stage="storage", detail=f"Failed to {action}: {exc}") from exc
        except ValueError as exc:
            raise StorageError(
                stage="storage",
                detail=f"Failed to {action}: response is not valid JSON.",
            ) from exc
        if not isinstance(payload, dict):
            raise StorageError(
                stage="storage",
                detail=f"Failed to {action}: response is not a JSON object.",
            )
        return payload

    @staticmethod
    def _required_string(payload: dict[str, Any], key: str, label: str) -> str:
        value = payload.get(key)
        if not isinstance(value, str) or not value.strip():
            raise StorageError(stage="storage", detail=f"{label} is missing `{key}`.")
        return value.strip()


class LocalBlobStorage:
    """Filesystem-backed blob store with one-time upload tokens."""

    _TARGET_PREFIX = "local-upload:"
    _INDEX_NAME = "index.json"

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root directory."""

        self.root = root
        self._pending: set[str] = set()
        self._lock = Lock()

    def request_upload_target(self) -> str:
        token = f"{self._TARGET_PREFIX}{uuid.uuid4().hex}"
        with self._lock:
            self._pending.add(token)
        return token

    def upload(self, target: str, data: bytes, content_type: str) -> str:
        with self._lock:
            if target not in self._pending:
                raise StorageError(
                    stage="storage",
                    detail="Upload target is unknown or was already used.",
                )
            self._pending.discard(target)

        storage_id = uuid.uuid4().hex
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            (self.root / storage_id).write_bytes(data)
            with self._lock:
                index = self._load_index()
                index[storage_id] = content_type
                self._write_index(index)
        except (OSError, ValueError) as exc:
            raise StorageError(stage="storage", detail=f"Failed to store asset: {exc}") from exc
        return storage_id

    def resolve_url(self, storage_id: str) -> str | None:
        path = self.root / storage_id
        if not path.is_file():
            return None
        return path.resolve().as_uri()

    def content_type(self, storage_id: str) -> str | None:
        """Return the content type recorded for a stored blob."""

        return self._load_index().get(storage_id)

    def _load_index(self) -> dict[str, str]:
        index_path = self.root / self._INDEX_NAME
        if not index_path.exists():
            return {}
        payload = json.loads(index_path.read_text(encoding="utf-8"))
        return payload if isinstance(payload, dict) else {}

    def _write_index(self, index: dict[str, str]) -> None:
        (self.root / self._INDEX_NAME).write_text(
            json.dumps(index, indent=2, sort_keys=True),
            encoding="utf-8",
        )
