"""Unit tests for pure wizard transitions and forward guards."""

from __future__ import annotations

from dataclasses import replace

import pytest

from castory.errors import TransitionBlockedError
from castory.models.datatypes import AssetReference
from castory.wizard import (
    ArticleToggled,
    AudioPublished,
    ImageCleared,
    ImagePublished,
    ScriptEdited,
    ScriptGenerated,
    SearchCompleted,
    Step,
    TitleEdited,
    VoiceChosen,
    WizardSession,
    advance,
    apply_event,
    can_advance,
    forward_blockers,
    go_back,
    publish_blockers,
)
from castory.wizard.transitions import OperationFinished, OperationStarted
from tests.fakes import make_articles

AUDIO = AssetReference(url="https://cdn.example/a", storage_id="a")
IMAGE = AssetReference(url="https://cdn.example/i", storage_id="i")


def _with_results(count: int = 5) -> WizardSession:
    """Return a topic-step session with search results applied."""

    return apply_event(
        WizardSession(),
        SearchCompleted(topic="technology", articles=tuple(make_articles(count))),
    )


def _media_ready() -> WizardSession:
    """Return a media-step session with a complete artifact set."""

    session = replace(_with_results(), step=Step.MEDIA, script="Hello.")
    for event in (
        VoiceChosen("alloy"),
        AudioPublished(reference=AUDIO, duration_seconds=61.5),
        ImagePublished(reference=IMAGE),
    ):
        session = apply_event(session, event)
    return session


def test_search_results_select_every_article() -> None:
    """Fresh results start fully selected."""

    session = _with_results(5)

    assert session.topic == "technology"
    assert session.selected_indexes == (0, 1, 2, 3, 4)
    assert [article.title for article in session.selected_articles][:2] == ["Story 1", "Story 2"]


def test_toggling_articles_keeps_selection_sorted() -> None:
    """Toggling removes and re-adds indexes; out-of-range toggles are ignored."""

    session = _with_results(5)
    for index in (1, 3, 4, 1):
        session = apply_event(session, ArticleToggled(index))
    session = apply_event(session, ArticleToggled(42))

    assert session.selected_indexes == (0, 1, 2)


def test_topic_step_requires_results_and_idle_search() -> None:
    """The topic step unlocks only after a search returned results."""

    assert forward_blockers(WizardSession()) == ["no search results yet"]

    running = apply_event(_with_results(), OperationStarted("search"))
    assert forward_blockers(running) == ["search is still running"]

    finished = apply_event(running, OperationFinished("search"))
    assert can_advance(finished)
    assert advance(finished).step == Step.ARTICLES


def test_articles_step_requires_selection_and_script() -> None:
    """Deselecting every article blocks the step even with a script."""

    session = advance(_with_results(2))
    assert "script has not been generated" in forward_blockers(session)

    session = apply_event(session, ScriptGenerated(script="Hi all.", date_label="October 19, 2026"))
    assert can_advance(session)

    for index in (0, 1):
        session = apply_event(session, ArticleToggled(index))
    assert forward_blockers(session) == ["no articles selected"]


def test_script_generation_fills_empty_metadata_only() -> None:
    """Default title, description, and image prompt never overwrite author edits."""

    session = apply_event(_with_results(3), TitleEdited("My own title"))
    session = apply_event(session, ScriptGenerated(script="Script body.", date_label="October 19, 2026"))

    assert session.title == "My own title"
    assert session.voice_prompt == "Script body."
    assert session.description
    assert "technology" in session.image_prompt.lower()

    fresh = apply_event(_with_results(3), ScriptGenerated(script="x", date_label="October 19, 2026"))
    assert fresh.title == "Technology News Briefing - October 19, 2026"


def test_script_step_blocks_empty_script_and_edits_sync_voice_prompt() -> None:
    """Clearing the script blocks the script step."""

    session = replace(_with_results(), step=Step.SCRIPT, script="Draft.")
    assert can_advance(session)

    session = apply_event(session, ScriptEdited("   "))
    assert session.voice_prompt == "   "
    assert forward_blockers(session) == ["script is empty"]


def test_media_step_requires_audio_thumbnail_and_voice() -> None:
    """Missing media is listed one reason per missing artifact."""

    bare = replace(_with_results(), step=Step.MEDIA, script="Hello.")
    assert forward_blockers(bare) == [
        "audio has not been generated",
        "thumbnail has not been generated",
        "no voice selected",
    ]

    ready = _media_ready()
    assert can_advance(ready)
    assert ready.audio_duration == 61.5

    generating = apply_event(ready, OperationStarted("image"))
    assert forward_blockers(generating) == ["thumbnail generation is still running"]


def test_removing_thumbnail_blocks_media_step_again() -> None:
    """Clearing the image returns the media step to blocked."""

    session = apply_event(_media_ready(), ImageCleared())

    assert session.image is None
    assert forward_blockers(session) == ["thumbnail has not been generated"]


def test_forced_advance_raises_with_reasons() -> None:
    """A forced forward transition reports the blocking step and reasons."""

    with pytest.raises(TransitionBlockedError) as exc_info:
        advance(WizardSession())

    assert exc_info.value.step == "topic"
    assert exc_info.value.reasons == ("no search results yet",)


def test_publish_is_the_last_step() -> None:
    """Nothing lies beyond the publish step."""

    session = advance(_media_ready())
    assert session.step == Step.PUBLISH

    with pytest.raises(TransitionBlockedError):
        advance(session)


def test_going_back_keeps_artifacts_and_stops_at_topic() -> None:
    """Backward moves never discard generated state."""

    session = _media_ready()
    back = go_back(go_back(session))

    assert back.step == Step.ARTICLES
    assert back.audio == AUDIO
    assert back.image == IMAGE
    assert go_back(WizardSession()) == WizardSession()


def test_publish_blockers_require_metadata_and_idle_submit() -> None:
    """Publish needs title, description, and no submit in flight."""

    session = _media_ready()
    assert publish_blockers(session) == ["title is empty", "description is empty"]

    session = replace(session, title="T", description="D")
    assert publish_blockers(session) == []

    submitting = apply_event(session, OperationStarted("publish"))
    assert publish_blockers(submitting) == ["publish is already in progress"]


def test_unknown_operation_is_rejected() -> None:
    """Operation flags are limited to the known operations."""

    with pytest.raises(ValueError):
        apply_event(WizardSession(), OperationStarted("upload"))
