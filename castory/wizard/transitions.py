"""Pure wizard transitions and forward guards.

Responsibilities:
- Apply author and generation events to a `WizardSession`, returning a new value.
- Compute the reasons that block leaving the current step or publishing.
- Move along the linear step sequence without ever skipping forward.

Every function here is side-effect free; the coordinator owns collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable

from ..errors import TransitionBlockedError
from ..llm.prompts import PromptLibrary
from ..models.datatypes import AssetReference, NewsArticle
from .session import Step, WizardSession

_PROMPTS = PromptLibrary()

OPERATION_FLAGS = {
    "search": "searching",
    "script": "generating_script",
    "audio": "generating_audio",
    "image": "generating_image",
    "publish": "submitting",
}


@dataclass(frozen=True, slots=True)
class TopicChosen:
    topic: str


@dataclass(frozen=True, slots=True)
class SearchCompleted:
    """Successful search; every returned article starts selected."""

    topic: str
    articles: tuple[NewsArticle, ...]


@dataclass(frozen=True, slots=True)
class ArticleToggled:
    index: int


@dataclass(frozen=True, slots=True)
class ToneChosen:
    tone: str


@dataclass(frozen=True, slots=True)
class DurationChosen:
    duration: str


@dataclass(frozen=True, slots=True)
class ScriptGenerated:
    """Successful script generation with the date used for the default title."""

    script: str
    date_label: str


@dataclass(frozen=True, slots=True)
class ScriptEdited:
    script: str


@dataclass(frozen=True, slots=True)
class TitleEdited:
    title: str


@dataclass(frozen=True, slots=True)
class DescriptionEdited:
    description: str


@dataclass(frozen=True, slots=True)
class VoiceChosen:
    voice: str | None


@dataclass(frozen=True, slots=True)
class VoicePromptEdited:
    """Narration text written directly by the author."""

    prompt: str


@dataclass(frozen=True, slots=True)
class ImagePromptEdited:
    prompt: str


@dataclass(frozen=True, slots=True)
class AudioPublished:
    reference: AssetReference
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class ImagePublished:
    reference: AssetReference


@dataclass(frozen=True, slots=True)
class ImageCleared:
    """Author removed the thumbnail."""


@dataclass(frozen=True, slots=True)
class OperationStarted:
    operation: str


@dataclass(frozen=True, slots=True)
class OperationFinished:
    operation: str


WizardEvent = (
    TopicChosen
    | SearchCompleted
    | ArticleToggled
    | ToneChosen
    | DurationChosen
    | ScriptGenerated
    | ScriptEdited
    | TitleEdited
    | DescriptionEdited
    | VoiceChosen
    | VoicePromptEdited
    | ImagePromptEdited
    | AudioPublished
    | ImagePublished
    | ImageCleared
    | OperationStarted
    | OperationFinished
)


def _on_search_completed(session: WizardSession, event: SearchCompleted) -> WizardSession:
    return replace(
        session,
        topic=event.topic,
        articles=tuple(event.articles),
        selected_indexes=tuple(range(len(event.articles))),
    )


def _on_article_toggled(session: WizardSession, event: ArticleToggled) -> WizardSession:
    if not 0 <= event.index < len(session.articles):
        return session
    if event.index in session.selected_indexes:
        selected = tuple(i for i in session.selected_indexes if i != event.index)
    else:
        selected = tuple(sorted((*session.selected_indexes, event.index)))
    return replace(session, selected_indexes=selected)


def _on_script_generated(session: WizardSession, event: ScriptGenerated) -> WizardSession:
    topic = session.topic or ""
    return replace(
        session,
        script=event.script,
        voice_prompt=event.script,
        title=session.title or _PROMPTS.default_title(topic, event.date_label),
        description=session.description
        or _PROMPTS.default_description(topic, session.tone, len(session.selected_articles)),
        image_prompt=session.image_prompt or _PROMPTS.cover_art_prompt(topic),
    )


def _on_operation(session: WizardSession, operation: str, running: bool) -> WizardSession:
    try:
        flag = OPERATION_FLAGS[operation]
    except KeyError as exc:
        raise ValueError(f"Unknown wizard operation: {operation}") from exc
    return replace(session, **{flag: running})


_HANDLERS: dict[type, Callable[[WizardSession, object], WizardSession]] = {
    TopicChosen: lambda s, e: replace(s, topic=e.topic),
    SearchCompleted: _on_search_completed,
    ArticleToggled: _on_article_toggled,
    ToneChosen: lambda s, e: replace(s, tone=e.tone),
    DurationChosen: lambda s, e: replace(s, duration=e.duration),
    ScriptGenerated: _on_script_generated,
    ScriptEdited: lambda s, e: replace(s, script=e.script, voice_prompt=e.script),
    TitleEdited: lambda s, e: replace(s, title=e.title),
    DescriptionEdited: lambda s, e: replace(s, description=e.description),
    VoiceChosen: lambda s, e: replace(s, voice=e.voice),
    VoicePromptEdited: lambda s, e: replace(s, voice_prompt=e.prompt),
    ImagePromptEdited: lambda s, e: replace(s, image_prompt=e.prompt),
    AudioPublished: lambda s, e: replace(
        s, audio=e.reference, audio_duration=e.duration_seconds
    ),
    ImagePublished: lambda s, e: replace(s, image=e.reference),
    ImageCleared: lambda s, e: replace(s, image=None),
    OperationStarted: lambda s, e: _on_operation(s, e.operation, True),
    OperationFinished: lambda s, e: _on_operation(s, e.operation, False),
}


def apply_event(session: WizardSession, event: WizardEvent) -> WizardSession:
    """Return the session that results from applying `event` to `session`."""

    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported wizard event: {type(event).__name__}")
    return handler(session, event)


def media_blockers(session: WizardSession) -> list[str]:
    """Return reasons the generated media set is not yet complete."""

    reasons: list[str] = []
    if session.audio is None:
        reasons.append("audio has not been generated")
    if session.image is None:
        reasons.append("thumbnail has not been generated")
    if not (session.voice or "").strip():
        reasons.append("no voice selected")
    return reasons


def forward_blockers(session: WizardSession) -> list[str]:
    """Return reasons that block advancing from the current step.

    An empty list means the forward action is enabled.
    """

    reasons: list[str] = []
    step = session.step
    if step == Step.TOPIC:
        if session.searching:
            reasons.append("search is still running")
        if not session.articles:
            reasons.append("no search results yet")
    elif step == Step.ARTICLES:
        if session.generating_script:
            reasons.append("script generation is still running")
        if not session.selected_indexes:
            reasons.append("no articles selected")
        if not session.script.strip():
            reasons.append("script has not been generated")
    elif step == Step.SCRIPT:
        if not session.script.strip():
            reasons.append("script is empty")
    elif step == Step.MEDIA:
        if session.generating_audio:
            reasons.append("audio generation is still running")
        if session.generating_image:
            reasons.append("thumbnail generation is still running")
        reasons.extend(media_blockers(session))
    else:
        reasons.append("publish is the last step")
    return reasons


def can_advance(session: WizardSession) -> bool:
    return not forward_blockers(session)


def advance(session: WizardSession) -> WizardSession:
    """Move one step forward.

    Raises:
        TransitionBlockedError: If a forward guard does not hold.
    """

    reasons = forward_blockers(session)
    if reasons:
        raise TransitionBlockedError(step=session.step.name.lower(), reasons=tuple(reasons))
    return replace(session, step=Step(session.step + 1))


def go_back(session: WizardSession) -> WizardSession:
    """Move one step backward; generated artifacts are kept."""

    if session.step == Step.TOPIC:
        return session
    return replace(session, step=Step(session.step - 1))


def publish_blockers(session: WizardSession) -> list[str]:
    """Return reasons that block the terminal publish action."""

    reasons = media_blockers(session)
    if session.submitting:
        reasons.append("publish is already in progress")
    if not session.title.strip():
        reasons.append("title is empty")
    if not session.description.strip():
        reasons.append("description is empty")
    return reasons
