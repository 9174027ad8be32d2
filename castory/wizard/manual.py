"""Single-form podcast authoring without news search or scripting.

Responsibilities:
- Let the author write title, description, and narration text directly.
- Reuse the news wizard's synthesis, publishing, and draft machinery.
- Persist only the hand-written form fields under a separate draft key.
"""

from __future__ import annotations

from typing import Any

from .coordinator import PodcastWizard
from .session import MANUAL_DRAFT_FIELDS, Step, WizardSession
from .transitions import publish_blockers

MIN_TEXT_LENGTH = 2


class ManualPodcastWizard(PodcastWizard):
    """Author a podcast from hand-written text.

    The session sits on the media step from the start; publishing only needs
    the media set and the form fields, not a walk through the news steps.
    """

    draft_fields = MANUAL_DRAFT_FIELDS
    narration_label = "Voice prompt"

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("search", None)
        kwargs.setdefault("script_writer", None)
        kwargs.setdefault("defaults", WizardSession(step=Step.MEDIA))
        super().__init__(**kwargs)

    def narration_text(self, session: WizardSession) -> str:
        return session.voice_prompt

    def publish_blockers(self, session: WizardSession) -> list[str]:
        reasons = publish_blockers(session)
        if session.title.strip() and len(session.title.strip()) < MIN_TEXT_LENGTH:
            reasons.append(f"title must be at least {MIN_TEXT_LENGTH} characters")
        if session.description.strip() and len(session.description.strip()) < MIN_TEXT_LENGTH:
            reasons.append(f"description must be at least {MIN_TEXT_LENGTH} characters")
        if not session.voice_prompt.strip():
            reasons.append("voice prompt is empty")
        return reasons
