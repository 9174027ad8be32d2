"""Deterministic collaborator doubles shared by Castory tests."""

from __future__ import annotations

from dataclasses import dataclass, field
import io
from typing import Callable
import wave

from castory.errors import StorageError, UpstreamError
from castory.models.datatypes import NewsArticle, PodcastRecord
from castory.storage.documents import AuthorIdentity


@dataclass
class ManualTask:
    """Pending callback owned by `ManualScheduler`."""

    due: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        """Mark the task so it never fires."""

        self.cancelled = True


class ManualScheduler:
    """Virtual clock scheduler; callbacks fire only from `advance`."""

    def __init__(self) -> None:
        """Start the virtual clock at zero."""

        self.now = 0.0
        self._tasks: list[ManualTask] = []

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ManualTask:
        """Queue `callback` at `now + delay_seconds`."""

        task = ManualTask(due=self.now + delay_seconds, callback=callback)
        self._tasks.append(task)
        return task

    @property
    def pending(self) -> list[ManualTask]:
        """Return live tasks that have not fired yet."""

        return [task for task in self._tasks if not task.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in due order."""

        target = self.now + seconds
        while True:
            due = [task for task in self.pending if task.due <= target + 1e-9]
            if not due:
                break
            task = min(due, key=lambda item: item.due)
            self._tasks.remove(task)
            self.now = max(self.now, task.due)
            task.callback()
        self.now = target


class RecordingNotifier:
    """Collect notifications instead of displaying them."""

    def __init__(self) -> None:
        """Initialize an empty notification list."""

        self.messages: list[tuple[str, str | None, bool]] = []

    def notify(self, title: str, detail: str | None = None, *, error: bool = False) -> None:
        """Record one notification."""

        self.messages.append((title, detail, error))

    @property
    def titles(self) -> list[str]:
        """Return notification titles in order."""

        return [title for title, _, _ in self.messages]


def make_articles(count: int) -> list[NewsArticle]:
    """Build `count` distinct articles."""

    return [
        NewsArticle(
            title=f"Story {index}",
            summary=f"Summary {index}",
            source=f"Source {index}",
            url=f"https://news.example/{index}",
        )
        for index in range(1, count + 1)
    ]


class FakeSearch:
    """Search collaborator returning fixed articles or raising."""

    def __init__(self, articles: list[NewsArticle] | None = None, error: Exception | None = None) -> None:
        """Configure results or a failure."""

        self.articles = articles if articles is not None else make_articles(5)
        self.error = error
        self.calls: list[tuple[str, int | None]] = []

    def search_news(self, topic: str, count: int | None = None) -> list[NewsArticle]:
        """Return configured articles."""

        self.calls.append((topic, count))
        if self.error is not None:
            raise self.error
        return list(self.articles)


class FakeScriptWriter:
    """Script collaborator returning a fixed script."""

    def __init__(self, script: str = "Hello listeners. Here is the news.") -> None:
        """Configure the returned script."""

        self.script = script
        self.calls: list[tuple[str, list[NewsArticle], str, str]] = []

    def generate_script(self, topic: str, articles: list[NewsArticle], tone: str, duration: str) -> str:
        """Return the configured script."""

        self.calls.append((topic, list(articles), tone, duration))
        return self.script


class FakeSpeech:
    """Speech collaborator that can fail on a chosen 1-based call number."""

    content_type = "audio/mpeg"

    def __init__(self, max_input_chars: int = 4096, fail_on_call: int | None = None) -> None:
        """Configure the input limit and optional failing call."""

        self.max_input_chars = max_input_chars
        self.fail_on_call = fail_on_call
        self.calls: list[tuple[str, str]] = []

    def synthesize(self, text: str, voice: str) -> bytes:
        """Return a payload that encodes the call number."""

        self.calls.append((text, voice))
        call_number = len(self.calls)
        if self.fail_on_call == call_number:
            raise UpstreamError(
                stage="speech",
                detail="OpenAI request failed (HTTP 500).",
                failure_kind="http_error",
                status_code=500,
            )
        return f"<frame-{call_number}>".encode("ascii")


class FakeImage:
    """Image collaborator returning fixed bytes or raising."""

    content_type = "image/png"

    def __init__(self, data: bytes = b"\x89PNG-fake", error: Exception | None = None) -> None:
        """Configure output bytes or a failure."""

        self.data = data
        self.error = error
        self.prompts: list[str] = []

    def synthesize(self, prompt: str) -> bytes:
        """Return configured bytes."""

        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.data


@dataclass
class FakeBlobStorage:
    """In-memory blob storage with switchable URL resolution."""

    resolve_missing: bool = False
    fail_upload: bool = False
    blobs: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    targets_issued: int = 0

    def request_upload_target(self) -> str:
        """Return a fresh upload target."""

        self.targets_issued += 1
        return f"memory://upload/{self.targets_issued}"

    def upload(self, target: str, data: bytes, content_type: str) -> str:
        """Store `data` and return its identifier."""

        if self.fail_upload:
            raise StorageError(stage="storage", detail="Upload rejected.")
        storage_id = f"blob-{len(self.blobs) + 1}"
        self.blobs[storage_id] = (data, content_type)
        return storage_id

    def resolve_url(self, storage_id: str) -> str | None:
        """Return a URL unless resolution is switched off."""

        if self.resolve_missing or storage_id not in self.blobs:
            return None
        return f"https://cdn.example/{storage_id}"


class FakeDocuments:
    """Document store double recording created podcasts."""

    def __init__(self, error: Exception | None = None) -> None:
        """Configure an optional failure."""

        self.error = error
        self.records: list[tuple[PodcastRecord, AuthorIdentity | None]] = []

    def create_record(self, record: PodcastRecord, identity: AuthorIdentity | None) -> str:
        """Record the podcast and return a sequential id."""

        if self.error is not None:
            raise self.error
        self.records.append((record, identity))
        return f"podcast-{len(self.records)}"


def integration_script() -> str:
    """Return a script long enough to need two speech calls at 4096 characters."""

    sentences = [
        f"Story number {index} covers a developing technology headline in detail."
        for index in range(88)
    ]
    return " ".join(sentences)


def silent_wav_bytes(duration_seconds: float = 0.1, sample_rate: int = 24000) -> bytes:
    """Build deterministic mono WAV bytes."""

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(b"\x00\x00" * int(duration_seconds * sample_rate))
    return buffer.getvalue()
