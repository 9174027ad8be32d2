"""Wizard session value and its draft projection.

Responsibilities:
- Hold every step-local field of one authoring session in one immutable value.
- Define the explicit allow-list of fields that survive into a draft snapshot.
- Rebuild a session from a draft, ignoring unknown or malformed entries.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Callable, Mapping

from ..models.datatypes import AssetReference, NewsArticle


class Step(IntEnum):
    """Linear wizard steps."""

    TOPIC = 0
    ARTICLES = 1
    SCRIPT = 2
    MEDIA = 3
    PUBLISH = 4


@dataclass(frozen=True, slots=True)
class WizardSession:
    """All state of one active authoring session.

    Generated asset references and in-flight flags live here but never
    reach a draft snapshot.
    """

    step: Step = Step.TOPIC
    topic: str | None = None
    articles: tuple[NewsArticle, ...] = ()
    selected_indexes: tuple[int, ...] = ()
    script: str = ""
    tone: str = "casual"
    duration: str = "medium"
    title: str = ""
    description: str = ""
    voice: str | None = None
    voice_prompt: str = ""
    image_prompt: str = ""
    audio: AssetReference | None = None
    audio_duration: float = 0.0
    image: AssetReference | None = None
    searching: bool = False
    generating_script: bool = False
    generating_audio: bool = False
    generating_image: bool = False
    submitting: bool = False

    @property
    def selected_articles(self) -> list[NewsArticle]:
        """Selected articles in selection order, skipping stale indexes."""

        return [
            self.articles[index]
            for index in self.selected_indexes
            if 0 <= index < len(self.articles)
        ]


def _decode_step(value: Any) -> Step | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    try:
        return Step(value)
    except ValueError:
        return None


def _decode_optional_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise TypeError("expected a string or null")


def _decode_text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value


def _decode_articles(value: Any) -> tuple[NewsArticle, ...]:
    if not isinstance(value, list):
        raise TypeError("expected a list of articles")
    return tuple(
        NewsArticle(
            title=_decode_text(item["title"]),
            summary=_decode_text(item["summary"]),
            source=_decode_text(item["source"]),
            url=_decode_text(item["url"]),
        )
        for item in value
    )


def _decode_indexes(value: Any) -> tuple[int, ...]:
    if not isinstance(value, list) or not all(
        isinstance(item, int) and not isinstance(item, bool) for item in value
    ):
        raise TypeError("expected a list of integers")
    return tuple(value)


@dataclass(frozen=True, slots=True)
class DraftField:
    """One session field allowed into draft snapshots."""

    name: str
    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]


def _identity(value: Any) -> Any:
    return value


# Only fields listed here are persisted. New session fields stay out of
# drafts until they are added explicitly.
DRAFT_FIELDS: tuple[DraftField, ...] = (
    DraftField("step", int, _decode_step),
    DraftField("topic", _identity, _decode_optional_text),
    DraftField(
        "articles",
        lambda articles: [article.as_payload() for article in articles],
        _decode_articles,
    ),
    DraftField("selected_indexes", list, _decode_indexes),
    DraftField("script", _identity, _decode_text),
    DraftField("tone", _identity, _decode_text),
    DraftField("duration", _identity, _decode_text),
    DraftField("title", _identity, _decode_text),
    DraftField("description", _identity, _decode_text),
    DraftField("voice", _identity, _decode_optional_text),
    DraftField("voice_prompt", _identity, _decode_text),
    DraftField("image_prompt", _identity, _decode_text),
)

# Manual authoring skips search and scripting; only the hand-written form
# fields are persisted under its own key.
MANUAL_DRAFT_FIELDS: tuple[DraftField, ...] = (
    DraftField("title", _identity, _decode_text),
    DraftField("description", _identity, _decode_text),
    DraftField("voice", _identity, _decode_optional_text),
    DraftField("voice_prompt", _identity, _decode_text),
    DraftField("image_prompt", _identity, _decode_text),
)


def to_draft(
    session: WizardSession,
    fields: tuple[DraftField, ...] = DRAFT_FIELDS,
) -> dict[str, Any]:
    """Project a session onto its persistable draft snapshot."""

    return {item.name: item.encode(getattr(session, item.name)) for item in fields}


def from_draft(
    payload: Mapping[str, Any],
    base: WizardSession | None = None,
    fields: tuple[DraftField, ...] = DRAFT_FIELDS,
) -> WizardSession:
    """Hydrate a session from a draft snapshot.

    Fields that are missing, malformed, or not on the allow-list keep the
    value from `base`.
    """

    session = base if base is not None else WizardSession()
    changes: dict[str, Any] = {}
    for item in fields:
        if item.name not in payload:
            continue
        try:
            decoded = item.decode(payload[item.name])
        except (TypeError, KeyError, ValueError):
            continue
        if item.name == "step" and decoded is None:
            continue
        changes[item.name] = decoded
    return replace(session, **changes)
