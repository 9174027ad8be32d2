"""Speech synthesis collaborator.

Responsibilities:
- Define the protocol for chunk-level speech synthesis.
- Provide an OpenAI-backed implementation returning raw audio bytes.
"""

from __future__ import annotations

from typing import Protocol

from ..errors import UpstreamError
from ..llm.openai_client import OpenAISpeechClient
from ..telemetry.usage import UsageTracker
from .voices import VOICE_NAMES


class SpeechSynthesizer(Protocol):
    """Protocol for speech providers."""

    max_input_chars: int
    content_type: str

    def synthesize(self, text: str, voice: str) -> bytes:
        """Synthesize one chunk of at most `max_input_chars` characters."""


_CONTENT_TYPES = {
    "mp3": "audio/mpeg",
    "aac": "audio/aac",
    "opus": "audio/ogg",
    "wav": "audio/wav",
}


class OpenAISpeechSynthesizer:
    """OpenAI-backed chunk-level speech synthesizer."""

    def __init__(
        self,
        model: str = "tts-1",
        api_key: str | None = None,
        response_format: str = "mp3",
        max_input_chars: int = 4096,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 120.0,
        usage: UsageTracker | None = None,
    ) -> None:
        if response_format not in _CONTENT_TYPES:
            raise ValueError(f"Unsupported speech response format `{response_format}`.")
        self.model = model
        self.response_format = response_format
        self.content_type = _CONTENT_TYPES[response_format]
        self.max_input_chars = max_input_chars
        self.client = OpenAISpeechClient(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )
        self.usage = usage if usage is not None else UsageTracker()

    def synthesize(self, text: str, voice: str) -> bytes:
        """Synthesize one chunk and return the provider's raw audio payload."""

        if voice not in VOICE_NAMES:
            raise UpstreamError(
                stage="speech",
                detail=f"Unsupported voice `{voice}`.",
                hint=f"Choose one of: {', '.join(VOICE_NAMES)}.",
                failure_kind="invalid_voice",
            )
        if len(text) > self.max_input_chars:
            raise ValueError(
                f"Speech input has {len(text)} characters; limit is {self.max_input_chars}."
            )
        audio = self.client.synthesize_speech(
            model=self.model,
            voice=voice,
            text=text,
            response_format=self.response_format,
        )
        self.usage.add_speech_call(len(text))
        return audio
