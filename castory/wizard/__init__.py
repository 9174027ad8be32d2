"""Wizard session, transitions, and step coordination."""

from .coordinator import LoggingNotifier, Notifier, PodcastWizard, date_label
from .manual import ManualPodcastWizard
from .session import DRAFT_FIELDS, MANUAL_DRAFT_FIELDS, Step, WizardSession, from_draft, to_draft
from .transitions import (
    ArticleToggled,
    AudioPublished,
    DescriptionEdited,
    DurationChosen,
    ImageCleared,
    ImagePromptEdited,
    ImagePublished,
    ScriptEdited,
    ScriptGenerated,
    SearchCompleted,
    TitleEdited,
    ToneChosen,
    TopicChosen,
    VoiceChosen,
    VoicePromptEdited,
    advance,
    apply_event,
    can_advance,
    forward_blockers,
    go_back,
    publish_blockers,
)
from .unload_guard import InterruptConfirmHook, UnloadGuard

__all__ = [
    "ArticleToggled",
    "AudioPublished",
    "DRAFT_FIELDS",
    "DescriptionEdited",
    "DurationChosen",
    "ImageCleared",
    "ImagePromptEdited",
    "ImagePublished",
    "InterruptConfirmHook",
    "LoggingNotifier",
    "MANUAL_DRAFT_FIELDS",
    "ManualPodcastWizard",
    "Notifier",
    "PodcastWizard",
    "ScriptEdited",
    "ScriptGenerated",
    "SearchCompleted",
    "Step",
    "TitleEdited",
    "ToneChosen",
    "TopicChosen",
    "UnloadGuard",
    "VoiceChosen",
    "VoicePromptEdited",
    "WizardSession",
    "advance",
    "apply_event",
    "can_advance",
    "date_label",
    "forward_blockers",
    "from_draft",
    "go_back",
    "publish_blockers",
    "to_draft",
]
