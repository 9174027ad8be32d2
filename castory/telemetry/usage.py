"""Billable usage counters for external generative services.

Responsibilities:
- Count provider calls and synthesized characters per service.
- Provide a summary for CLI reporting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock


@dataclass(slots=True)
class UsageTracker:
    """Collect run-level usage counters for billable calls."""

    speech_calls: int = 0
    speech_characters: int = 0
    image_calls: int = 0
    text_calls: int = 0
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def add_speech_call(self, characters: int) -> None:
        """Record one speech synthesis call and its input length."""

        with self._lock:
            self.speech_calls += 1
            self.speech_characters += max(0, characters)

    def add_image_call(self) -> None:
        """Record one image synthesis call."""

        with self._lock:
            self.image_calls += 1

    def add_text_call(self) -> None:
        """Record one search or script generation call."""

        with self._lock:
            self.text_calls += 1

    def summary(self) -> dict[str, int]:
        """Return a summary dictionary for reporting."""

        return {
            "speech_calls": self.speech_calls,
            "speech_characters": self.speech_characters,
            "image_calls": self.image_calls,
            "text_calls": self.text_calls,
        }
