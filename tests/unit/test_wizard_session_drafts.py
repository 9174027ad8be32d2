"""Unit tests for the draft projection of a wizard session."""

from __future__ import annotations

import json

from castory.models.datatypes import AssetReference
from castory.wizard import DRAFT_FIELDS, Step, WizardSession, from_draft, to_draft
from tests.fakes import make_articles


def _populated_session() -> WizardSession:
    """Return a session with every field set, including non-draft ones."""

    return WizardSession(
        step=Step.MEDIA,
        topic="technology",
        articles=tuple(make_articles(3)),
        selected_indexes=(0, 2),
        script="Hello listeners.",
        tone="formal",
        duration="short",
        title="Title",
        description="Description",
        voice="nova",
        voice_prompt="Hello listeners.",
        image_prompt="Cover",
        audio=AssetReference(url="https://cdn.example/a", storage_id="a"),
        audio_duration=12.5,
        image=AssetReference(url="https://cdn.example/i", storage_id="i"),
        generating_audio=True,
    )


def test_draft_holds_only_allow_listed_fields() -> None:
    """Asset references, durations, and in-flight flags never reach a draft."""

    draft = to_draft(_populated_session())

    assert set(draft) == {item.name for item in DRAFT_FIELDS}
    for excluded in ("audio", "image", "audio_duration", "generating_audio", "submitting"):
        assert excluded not in draft
    assert draft["step"] == 3
    assert draft["selected_indexes"] == [0, 2]
    json.dumps(draft)


def test_round_trip_restores_authoring_fields_but_not_media() -> None:
    """Hydration restores the text the author wrote; media must be regenerated."""

    restored = from_draft(json.loads(json.dumps(to_draft(_populated_session()))))

    assert restored.step == Step.MEDIA
    assert restored.topic == "technology"
    assert [article.title for article in restored.selected_articles] == ["Story 1", "Story 3"]
    assert restored.voice == "nova"
    assert restored.audio is None
    assert restored.image is None
    assert restored.generating_audio is False


def test_malformed_and_unknown_entries_are_ignored() -> None:
    """Bad values keep their defaults without rejecting the whole draft."""

    restored = from_draft(
        {
            "step": 9,
            "topic": 42,
            "articles": [{"title": "missing fields"}],
            "selected_indexes": ["0"],
            "script": "kept",
            "audio": {"url": "https://cdn.example/a", "storage_id": "a"},
            "submitting": True,
        }
    )

    assert restored.step == Step.TOPIC
    assert restored.topic is None
    assert restored.articles == ()
    assert restored.selected_indexes == ()
    assert restored.script == "kept"
    assert restored.audio is None
    assert restored.submitting is False


def test_boolean_step_is_not_treated_as_an_index() -> None:
    """`true` is not a step number even though bool subclasses int."""

    assert from_draft({"step": True}).step == Step.TOPIC


def test_missing_fields_keep_base_values() -> None:
    """Hydration overlays only the fields present in the draft."""

    base = WizardSession(tone="formal", voice="echo")
    restored = from_draft({"topic": "science"}, base=base)

    assert restored.topic == "science"
    assert restored.tone == "formal"
    assert restored.voice == "echo"
