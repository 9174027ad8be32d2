"""Unit tests for audio duration probing, step logging, and usage counters."""

from __future__ import annotations

import io

import pytest

from castory.audio.duration import probe_duration_seconds
from castory.telemetry.logger import StepLogger, configure_logging
from castory.telemetry.usage import UsageTracker
from tests.fakes import silent_wav_bytes


def test_wav_duration_is_read_from_header() -> None:
    """WAV payloads are measured without an external decoder."""

    assert probe_duration_seconds(silent_wav_bytes(0.5, 8000), "wav") == pytest.approx(0.5)


def test_unreadable_wav_raises_value_error() -> None:
    """Garbage WAV bytes surface as `ValueError` so callers can degrade."""

    with pytest.raises(ValueError, match="not a readable WAV"):
        probe_duration_seconds(b"not a wav", "wav")


def test_step_logger_emits_sorted_sanitized_context() -> None:
    """Step events are single deterministic lines with shell-safe values."""

    sink = io.StringIO()
    configure_logging(sink=sink, level="INFO")

    logger = StepLogger()
    logger.log_step_start("audio", voice="nova", chars=6000)
    logger.log_step_failure("audio", "UpstreamError", stage="speech")
    logger.log_step_complete("search", topic="climate tech")

    lines = sink.getvalue().splitlines()
    assert lines == [
        "[step] level=INFO step=audio event=start chars=6000 voice=nova",
        "[step] level=ERROR step=audio event=failure error_type=UpstreamError stage=speech",
        "[step] level=INFO step=search event=complete topic=climate_tech",
    ]


def test_configure_logging_respects_level() -> None:
    """Info events are hidden when only warnings are requested."""

    sink = io.StringIO()
    configure_logging(sink=sink, level="WARNING")

    StepLogger().log_step_start("script")

    assert sink.getvalue() == ""


def test_usage_tracker_summary() -> None:
    """Counters accumulate per service."""

    usage = UsageTracker()
    usage.add_speech_call(4096)
    usage.add_speech_call(1904)
    usage.add_image_call()
    usage.add_text_call()

    assert usage.summary() == {
        "speech_calls": 2,
        "speech_characters": 6000,
        "image_calls": 1,
        "text_calls": 1,
    }
