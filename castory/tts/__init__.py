"""Text-to-speech provider abstractions.

This package contains the voice catalogue and the chunk-level synthesizer
interface used by the synthesis orchestrator.
"""

from .synthesizer import OpenAISpeechSynthesizer, SpeechSynthesizer
from .voices import VOICE_NAMES, VOICE_PROFILES, VoiceProfile, is_supported_voice

__all__ = [
    "OpenAISpeechSynthesizer",
    "SpeechSynthesizer",
    "VOICE_NAMES",
    "VOICE_PROFILES",
    "VoiceProfile",
    "is_supported_voice",
]
