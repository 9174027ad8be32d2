"""Voice catalogue for speech synthesis.

Responsibilities:
- Represent the fixed, enumerated set of provider voice labels.
- Validate author voice choices before any paid call is made.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice profile offered to authors.

    Attributes:
        name: Provider-native voice label.
        description: Short human-readable character of the voice.
    """

    name: str
    description: str


VOICE_PROFILES: tuple[VoiceProfile, ...] = (
    VoiceProfile("alloy", "neutral and balanced"),
    VoiceProfile("echo", "warm male"),
    VoiceProfile("fable", "expressive storyteller"),
    VoiceProfile("onyx", "deep male"),
    VoiceProfile("nova", "bright female"),
    VoiceProfile("shimmer", "soft female"),
)

VOICE_NAMES: tuple[str, ...] = tuple(profile.name for profile in VOICE_PROFILES)


def is_supported_voice(voice: str | None) -> bool:
    """Return whether `voice` is one of the enumerated provider voices."""

    return voice in VOICE_NAMES
