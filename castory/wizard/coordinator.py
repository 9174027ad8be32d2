"""Wizard step handlers coordinating generation, storage, and drafts.

Responsibilities:
- Own the single `WizardSession` of one authoring run and replace it only
  through pure transitions.
- Call search, script, synthesis, publishing, and document-store
  collaborators at step boundaries, catching their failures there.
- Keep the draft store fed with the allow-listed projection of the session
  and hold the unload guard while calls are outstanding.
- Drop results that arrive after the session has ended.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from threading import RLock
from typing import Any, Callable, Iterable, Protocol, TypeVar

from loguru import logger

from ..drafts.kv import KeyValueStore
from ..drafts.scheduler import Scheduler
from ..drafts.store import (
    DEFAULT_ACTIVATION_DELAY_SECONDS,
    DEFAULT_DEBOUNCE_SECONDS,
    DraftPersistence,
    read_draft,
)
from ..errors import CastoryError
from ..models.datatypes import PodcastRecord
from ..news.script_writer import ScriptWriter
from ..news.search import NewsSearch
from ..storage.documents import AuthorIdentity, DocumentStore
from ..storage.publisher import AssetPublisher
from ..synthesis.orchestrator import SynthesisOrchestrator
from ..telemetry.logger import StepLogger
from ..tts.voices import is_supported_voice
from .session import DRAFT_FIELDS, DraftField, Step, WizardSession, from_draft, to_draft
from .transitions import (
    OPERATION_FLAGS,
    AudioPublished,
    ImageCleared,
    ImagePublished,
    OperationFinished,
    OperationStarted,
    ScriptGenerated,
    SearchCompleted,
    WizardEvent,
    advance,
    apply_event,
    forward_blockers,
    go_back,
    publish_blockers,
)
from .unload_guard import UnloadGuard

T = TypeVar("T")

_FAILURE_TITLES = {
    "search": "Error searching news",
    "script": "Error generating script",
    "audio": "Error generating audio",
    "image": "Error generating thumbnail",
    "publish": "Error creating podcast",
}


class Notifier(Protocol):
    """Author-facing notification sink."""

    def notify(self, title: str, detail: str | None = None, *, error: bool = False) -> None:
        """Show one human-readable notification."""


class LoggingNotifier:
    """Notifier that writes notifications to the log."""

    def notify(self, title: str, detail: str | None = None, *, error: bool = False) -> None:
        message = title if not detail else f"{title}: {detail}"
        if error:
            logger.error(message)
        else:
            logger.info(message)


def date_label(day: date) -> str:
    """Format a date the way auto-filled titles show it."""

    return f"{day:%B} {day.day}, {day.year}"


class PodcastWizard:
    """Coordinate one authoring session from topic to publish."""

    draft_fields: tuple[DraftField, ...] = DRAFT_FIELDS
    narration_label = "Script"

    def __init__(
        self,
        search: NewsSearch | None,
        script_writer: ScriptWriter | None,
        orchestrator: SynthesisOrchestrator,
        publisher: AssetPublisher,
        documents: DocumentStore,
        draft_store: KeyValueStore,
        draft_key: str,
        identity: AuthorIdentity | None = None,
        notifier: Notifier | None = None,
        scheduler: Scheduler | None = None,
        unload_guard: UnloadGuard | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        activation_delay_seconds: float = DEFAULT_ACTIVATION_DELAY_SECONDS,
        defaults: WizardSession | None = None,
        today: Callable[[], date] = date.today,
        step_logger: StepLogger | None = None,
    ) -> None:
        self.search_service = search
        self.script_writer = script_writer
        self.orchestrator = orchestrator
        self.publisher = publisher
        self.documents = documents
        self.identity = identity
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self.unload_guard = unload_guard if unload_guard is not None else UnloadGuard()
        self.step_logger = step_logger if step_logger is not None else StepLogger()
        self._defaults = defaults if defaults is not None else WizardSession()
        self._today = today
        self._draft_store = draft_store
        self._draft_key = draft_key
        self._persistence = DraftPersistence(
            draft_store,
            draft_key,
            scheduler=scheduler,
            debounce_seconds=debounce_seconds,
            activation_delay_seconds=activation_delay_seconds,
        )
        self._lock = RLock()
        self._session = self._defaults
        self._projection: dict[str, Any] | None = None
        self._started = False
        self._ended = False
        self._generation = 0

    @property
    def session(self) -> WizardSession:
        with self._lock:
            return self._session

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def last_saved(self) -> datetime | None:
        return self._persistence.last_saved

    def start(self) -> WizardSession:
        """Hydrate from any saved draft and begin persisting changes.

        Returns:
            The initial session, restored from the draft when one exists.
        """

        with self._lock:
            if self._started:
                return self._session
            self._started = True
            payload = read_draft(self._draft_store, self._draft_key)
            if payload is not None:
                self._session = from_draft(payload, self._defaults, self.draft_fields)
                self.notifier.notify("Draft restored", "Picking up where you left off.")
            self._persistence.start()
            self._persist()
            return self._session

    def dispatch(self, *events: WizardEvent) -> WizardSession:
        """Apply author edits to the live session."""

        with self._lock:
            if self._ended:
                return self._session
            for event in events:
                self._session = apply_event(self._session, event)
            self._persist()
            return self._session

    def forward_blockers(self) -> list[str]:
        return forward_blockers(self.session)

    def advance(self) -> WizardSession:
        """Move forward one step; raises `TransitionBlockedError` when guarded."""

        with self._lock:
            if self._ended:
                return self._session
            self._session = advance(self._session)
            self._persist()
            return self._session

    def go_back(self) -> WizardSession:
        with self._lock:
            if self._ended:
                return self._session
            self._session = go_back(self._session)
            self._persist()
            return self._session

    def search(self, topic: str, count: int | None = None) -> bool:
        """Search news for `topic`; on success every result starts selected."""

        topic = topic.strip()
        if not topic:
            self.notifier.notify("Please enter a topic", error=True)
            return False

        def work(_: WizardSession) -> tuple[list[WizardEvent], bool]:
            if self.search_service is None:
                raise ValueError("News search is not available in this session.")
            articles = self.search_service.search_news(topic, count)
            if not articles:
                raise ValueError(f"No news articles found for `{topic}`.")
            return [SearchCompleted(topic=topic, articles=tuple(articles))], True

        return bool(self._run("search", work, topic=topic))

    def generate_script(self) -> bool:
        """Generate a script from the selected articles and auto-fill metadata."""

        snapshot = self.session
        if not snapshot.selected_articles:
            self.notifier.notify("Select at least one article", error=True)
            return False

        def work(current: WizardSession) -> tuple[list[WizardEvent], bool]:
            if self.script_writer is None:
                raise ValueError("Script generation is not available in this session.")
            script = self.script_writer.generate_script(
                current.topic or "",
                current.selected_articles,
                current.tone,
                current.duration,
            )
            if not script.strip():
                raise ValueError("Script generation returned no text.")
            return [ScriptGenerated(script=script, date_label=date_label(self._today()))], True

        return bool(
            self._run(
                "script",
                work,
                articles=len(snapshot.selected_articles),
                duration=snapshot.duration,
            )
        )

    def generate_audio(self) -> bool:
        """Synthesize the script and replace the audio reference on success."""

        snapshot = self.session
        narration = self.narration_text(snapshot)
        if not narration.strip():
            self.notifier.notify(f"{self.narration_label} is empty", error=True)
            return False
        if not is_supported_voice(snapshot.voice):
            self.notifier.notify("Please choose a voice", error=True)
            return False

        def work(current: WizardSession) -> tuple[list[WizardEvent], bool]:
            asset = self.orchestrator.synthesize_audio(
                self.narration_text(current), current.voice or ""
            )
            reference = self.publisher.publish_asset(asset)
            duration = asset.duration_seconds if asset.duration_seconds is not None else 0.0
            return [AudioPublished(reference=reference, duration_seconds=duration)], True

        return bool(self._run("audio", work, voice=snapshot.voice, chars=len(narration)))

    def generate_image(self) -> bool:
        """Synthesize a thumbnail and replace the image reference on success."""

        if not self.session.image_prompt.strip():
            self.notifier.notify("Thumbnail prompt is empty", error=True)
            return False

        def work(current: WizardSession) -> tuple[list[WizardEvent], bool]:
            asset = self.orchestrator.synthesize_image(current.image_prompt)
            return [ImagePublished(reference=self.publisher.publish_asset(asset))], True

        return bool(self._run("image", work, source="generated"))

    def upload_image(self, data: bytes, content_type: str) -> bool:
        """Publish an author-supplied thumbnail instead of generating one."""

        if not data:
            self.notifier.notify("Thumbnail file is empty", error=True)
            return False

        def work(_: WizardSession) -> tuple[list[WizardEvent], bool]:
            return [ImagePublished(reference=self.publisher.publish(data, content_type))], True

        return bool(self._run("image", work, source="upload"))

    def remove_image(self) -> WizardSession:
        return self.dispatch(ImageCleared())

    def generate_media(self) -> tuple[bool, bool]:
        """Generate audio and thumbnail side by side.

        The two artifacts are independent; audio chunks inside the audio
        call still run one after another.
        """

        with ThreadPoolExecutor(max_workers=2) as executor:
            audio = executor.submit(self.generate_audio)
            image = executor.submit(self.generate_image)
            return audio.result(), image.result()

    def publish(self) -> str | None:
        """Submit the artifact set; on success discard the draft and end the session.

        Returns:
            The created record id, or `None` when publishing was blocked or failed.
        """

        snapshot = self.session
        reasons = self.publish_blockers(snapshot)
        if reasons:
            self.notifier.notify("Cannot publish yet", "; ".join(reasons), error=True)
            return None

        def work(current: WizardSession) -> tuple[list[WizardEvent], str]:
            if current.audio is None or current.image is None:
                raise ValueError("Audio and thumbnail are required to publish.")
            record = PodcastRecord(
                title=current.title.strip(),
                description=current.description.strip(),
                audio=current.audio,
                image=current.image,
                voice=current.voice or "",
                voice_prompt=current.voice_prompt or current.script,
                image_prompt=current.image_prompt,
                duration_seconds=current.audio_duration,
            )
            return [], self.documents.create_record(record, self.identity)

        record_id = self._run("publish", work, title=snapshot.title)
        if record_id is None:
            return None
        self._finish()
        self.notifier.notify("Podcast created", "Your podcast has been published.")
        return record_id

    def narration_text(self, session: WizardSession) -> str:
        """Text that audio generation narrates."""

        return session.script

    def publish_blockers(self, session: WizardSession) -> list[str]:
        reasons = publish_blockers(session)
        if session.step != Step.PUBLISH:
            reasons.insert(0, "wizard is not on the publish step")
        return reasons

    def discard_draft(self) -> None:
        self._persistence.discard()

    def close(self, flush: bool = False) -> None:
        """Stop persisting; results still in flight are dropped.

        With `flush`, the latest projection is written first when the draft
        store is already active.
        """

        with self._lock:
            if flush:
                self._persistence.flush()
            self._generation += 1
            self._ended = True
            self._persistence.close()

    def _finish(self) -> None:
        with self._lock:
            self._generation += 1
            self._ended = True
            self._persistence.discard()
            self._persistence.close()
            self._session = self._defaults

    def _run(
        self,
        operation: str,
        work: Callable[[WizardSession], tuple[list[WizardEvent], T]],
        **context: object,
    ) -> T | None:
        """Run one external step with in-flight flag, unload guard, and logging.

        On failure the session is left as it was before the step, apart from
        the in-flight flag being cleared.
        """

        flag = OPERATION_FLAGS[operation]
        with self._lock:
            if self._ended:
                return None
            if getattr(self._session, flag):
                self.notifier.notify(f"{operation.capitalize()} is already running", error=True)
                return None
            token = self._generation
            self._session = apply_event(self._session, OperationStarted(operation))
            snapshot = self._session

        self.unload_guard.begin()
        self.step_logger.log_step_start(operation, **context)
        try:
            events, result = work(snapshot)
        except (CastoryError, ValueError) as exc:
            stage = exc.stage if isinstance(exc, CastoryError) else "validation"
            self._fail(operation, token, exc, stage)
            return None
        except Exception as exc:
            logger.exception("unexpected {operation} failure", operation=operation)
            self._fail(operation, token, exc, "unexpected")
            return None
        finally:
            self.unload_guard.end()

        if not self._apply_if_current(token, [*events, OperationFinished(operation)]):
            logger.debug("dropping stale {operation} result", operation=operation)
            return None
        self.step_logger.log_step_complete(operation, **context)
        return result

    def _fail(self, operation: str, token: int, exc: Exception, stage: str) -> None:
        """Clear the in-flight flag and report a failed step."""

        self.step_logger.log_step_failure(operation, type(exc).__name__, stage=stage)
        self._apply_if_current(token, [OperationFinished(operation)])
        self.notifier.notify(_FAILURE_TITLES[operation], _describe(exc), error=True)

    def _apply_if_current(self, token: int, events: Iterable[WizardEvent]) -> bool:
        with self._lock:
            if token != self._generation or self._ended:
                return False
            for event in events:
                self._session = apply_event(self._session, event)
            self._persist()
            return True

    def _persist(self) -> None:
        projection = to_draft(self._session, self.draft_fields)
        if projection != self._projection:
            self._projection = projection
            self._persistence.update(projection)


def _describe(exc: Exception) -> str:
    if isinstance(exc, CastoryError):
        return exc.detail if not exc.hint else f"{exc.detail} {exc.hint}"
    return str(exc)
