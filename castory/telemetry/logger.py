"""Structured step logging utilities.

Responsibilities:
- Emit concise, deterministic step-level runtime logs through `loguru`.
- Keep payloads and credentials out of failure events.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def configure_logging(sink: TextIO | None = None, level: str = "INFO") -> None:
    """Route `loguru` output to one plain-text sink."""

    logger.remove()
    logger.add(sink or sys.stderr, format="{message}", level=level, colorize=False)


class StepLogger:
    """Emit deterministic step events for wizard and generation activity."""

    def _emit(self, level: str, event: str, step: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[step] level={level} step={step} event={event}{_format_context(context)}"
        logger.log(level, line)

    def log_step_start(self, step: str, **context: object) -> None:
        """Emit a step-start runtime event."""

        self._emit("INFO", "start", step, **context)

    def log_step_complete(self, step: str, **context: object) -> None:
        """Emit a step-complete runtime event."""

        self._emit("INFO", "complete", step, **context)

    def log_step_failure(self, step: str, error_type: str, stage: str | None = None) -> None:
        """Emit a step-failure runtime event without sensitive payload details."""

        if stage is None:
            self._emit("ERROR", "failure", step, error_type=error_type)
            return
        self._emit("ERROR", "failure", step, error_type=error_type, stage=stage)
