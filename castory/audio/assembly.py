"""Synthesized segment assembly.

Responsibilities:
- Join per-chunk audio into one contiguous binary in chunk-index order.
- Byte-concatenate frame-based formats; re-encode containers that cannot be
  concatenated (WAV) through the standard `wave` module.
"""

from __future__ import annotations

import io
from typing import Protocol
import wave

from ..models.datatypes import SynthesizedSegment


class SegmentAssembler(Protocol):
    """Protocol for turning ordered segments into one asset payload."""

    def assemble(self, segments: list[SynthesizedSegment]) -> bytes:
        """Return the combined payload for all segments."""


def _ordered(segments: list[SynthesizedSegment]) -> list[SynthesizedSegment]:
    return sorted(segments, key=lambda item: item.chunk_index)


class FrameConcatAssembler:
    """Concatenate raw bytes of frame-based compressed audio (MP3, AAC/ADTS, Opus pages)."""

    def assemble(self, segments: list[SynthesizedSegment]) -> bytes:
        return b"".join(segment.data for segment in _ordered(segments))


class WavAssembler:
    """Merge WAV segments by re-writing their PCM frames under one header."""

    def assemble(self, segments: list[SynthesizedSegment]) -> bytes:
        """Merge ordered WAV payloads into one WAV payload."""

        ordered_segments = _ordered(segments)
        output = io.BytesIO()

        if not ordered_segments:
            with wave.open(output, "wb") as merged:
                merged.setnchannels(1)
                merged.setsampwidth(2)
                merged.setframerate(24000)
                merged.writeframes(b"")
            return output.getvalue()

        with wave.open(io.BytesIO(ordered_segments[0].data), "rb") as first:
            channels = first.getnchannels()
            sample_width = first.getsampwidth()
            framerate = first.getframerate()

        with wave.open(output, "wb") as merged:
            merged.setnchannels(channels)
            merged.setsampwidth(sample_width)
            merged.setframerate(framerate)

            for segment in ordered_segments:
                with wave.open(io.BytesIO(segment.data), "rb") as chunk:
                    if (
                        chunk.getnchannels() != channels
                        or chunk.getsampwidth() != sample_width
                        or chunk.getframerate() != framerate
                    ):
                        raise ValueError(
                            f"Incompatible WAV parameters for segment {segment.chunk_index}."
                        )
                    merged.writeframes(chunk.readframes(chunk.getnframes()))

        return output.getvalue()


def assembler_for_format(audio_format: str) -> SegmentAssembler:
    """Return the assembler matching a speech response format."""

    if audio_format == "wav":
        return WavAssembler()
    return FrameConcatAssembler()
