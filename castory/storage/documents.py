"""Document store collaborator for published podcasts.

Responsibilities:
- Require an authenticated author identity for writes.
- Synthesize a user record on an author's first write.
- Persist published podcast records in a JSON document file.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from threading import Lock
from typing import Any, Protocol
import uuid

from ..errors import StorageError
from ..models.datatypes import PodcastRecord


@dataclass(frozen=True, slots=True)
class AuthorIdentity:
    """Authenticated caller identity supplied by the identity provider."""

    subject: str
    email: str | None = None
    name: str | None = None
    picture_url: str | None = None


class DocumentStore(Protocol):
    """Protocol for creating published podcast records."""

    def create_record(self, record: PodcastRecord, identity: AuthorIdentity | None) -> str:
        """Insert `record` for `identity` and return its record identifier."""


class JsonDocumentStore:
    """Single-file JSON document store with `users` and `podcasts` collections."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = Lock()

    def create_record(self, record: PodcastRecord, identity: AuthorIdentity | None) -> str:
        if identity is None or not identity.subject.strip():
            raise StorageError(
                stage="publish",
                detail="Not authenticated.",
                hint="Sign in before publishing.",
            )

        with self._lock:
            document = self._load()
            user = self._find_or_create_user(document, identity)
            record_id = uuid.uuid4().hex
            document["podcasts"].append(
                {
                    "_id": record_id,
                    "user": user["_id"],
                    "author": user["name"],
                    "authorId": user["clerkId"],
                    "authorImageUrl": user["imageUrl"],
                    **record.as_payload(),
                }
            )
            self._save(document)
        return record_id

    @staticmethod
    def _find_or_create_user(document: dict[str, Any], identity: AuthorIdentity) -> dict[str, Any]:
        for user in document["users"]:
            if user.get("clerkId") == identity.subject:
                return user
        email = identity.email or f"{identity.subject}@castory.user"
        user = {
            "_id": uuid.uuid4().hex,
            "clerkId": identity.subject,
            "email": email,
            "name": identity.name or (identity.email.split("@")[0] if identity.email else "Unknown"),
            "imageUrl": identity.picture_url or "",
        }
        document["users"].append(user)
        return user

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"users": [], "podcasts": []}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(
                stage="publish",
                detail=f"Document store `{self.path}` is unreadable: {exc}",
            ) from exc
        if not isinstance(payload, dict):
            raise StorageError(
                stage="publish",
                detail=f"Document store `{self.path}` root must be a JSON object.",
            )
        for collection in ("users", "podcasts"):
            payload.setdefault(collection, [])
            if not isinstance(payload[collection], list):
                raise StorageError(
                    stage="publish",
                    detail=f"Document store `{self.path}` field `{collection}` must be a list.",
                )
        return payload

    def _save(self, document: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            staging = self.path.with_name(f"{self.path.name}.tmp")
            staging.write_text(
                json.dumps(document, ensure_ascii=False, indent=2, sort_keys=True),
                encoding="utf-8",
            )
            os.replace(staging, self.path)
        except OSError as exc:
            raise StorageError(
                stage="publish",
                detail=f"Failed to write document store `{self.path}`: {exc}",
            ) from exc
