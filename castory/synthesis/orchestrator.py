"""Synthesis orchestration for podcast audio and thumbnails.

Responsibilities:
- Segment scripts to the speech provider limit and synthesize every chunk.
- Issue chunk calls strictly one after another, in chunk order.
- Return a complete `Asset` or fail without exposing any partial audio.
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from ..audio.assembly import SegmentAssembler, assembler_for_format
from ..audio.duration import probe_duration_seconds
from ..errors import ConfigurationError, UpstreamError
from ..imaging.synthesizer import ImageSynthesizer
from ..models.datatypes import Asset, SynthesizedSegment
from ..text.segmenter import TextSegmenter
from ..tts.synthesizer import SpeechSynthesizer

_AUDIO_FORMATS = {
    "audio/mpeg": "mp3",
    "audio/aac": "aac",
    "audio/ogg": "opus",
    "audio/wav": "wav",
}


class SynthesisOrchestrator:
    """Drive speech and image providers and assemble their results."""

    def __init__(
        self,
        speech: SpeechSynthesizer,
        image: ImageSynthesizer,
        segmenter: TextSegmenter | None = None,
        assembler: SegmentAssembler | None = None,
        duration_probe: Callable[[bytes, str], float] = probe_duration_seconds,
    ) -> None:
        self.speech = speech
        self.image = image
        self.segmenter = segmenter if segmenter is not None else TextSegmenter()
        self.audio_format = _AUDIO_FORMATS.get(speech.content_type, "mp3")
        self.assembler = (
            assembler if assembler is not None else assembler_for_format(self.audio_format)
        )
        self.duration_probe = duration_probe

    def synthesize_audio(self, script: str, voice: str) -> Asset:
        """Synthesize `script` with `voice` into one contiguous audio asset.

        Chunks are synthesized sequentially. Running them concurrently would
        break output ordering and the provider's rate limits.

        Raises:
            ValueError: If the script is blank.
            ConfigurationError: If the provider credential is missing.
            UpstreamError: If any chunk call fails; no partial asset survives.
        """

        chunks = self.segmenter.segment(script.strip(), self.speech.max_input_chars)
        if not chunks:
            raise ValueError("Cannot synthesize audio for an empty script.")

        segments: list[SynthesizedSegment] = []
        for chunk in chunks:
            logger.debug(
                "synthesizing chunk {index}/{total} ({length} chars)",
                index=chunk.index + 1,
                total=len(chunks),
                length=len(chunk.text),
            )
            try:
                data = self.speech.synthesize(chunk.text, voice)
            except ConfigurationError:
                raise
            except UpstreamError as exc:
                raise UpstreamError(
                    stage="speech",
                    detail=(
                        f"Failed to generate audio at chunk {chunk.index + 1} of "
                        f"{len(chunks)}: {exc.detail}"
                    ),
                    hint=exc.hint,
                    failure_kind=exc.failure_kind,
                    status_code=exc.status_code,
                    provider_code=exc.provider_code,
                ) from exc
            segments.append(SynthesizedSegment(chunk_index=chunk.index, data=data))

        combined = self.assembler.assemble(segments)
        return Asset(
            data=combined,
            content_type=self.speech.content_type,
            duration_seconds=self._measure(combined),
        )

    def synthesize_image(self, prompt: str) -> Asset:
        """Generate one thumbnail image; provider failures propagate unchanged."""

        if not prompt.strip():
            raise ValueError("Cannot synthesize an image for an empty prompt.")
        data = self.image.synthesize(prompt)
        return Asset(data=data, content_type=self.image.content_type)

    def _measure(self, data: bytes) -> float | None:
        """Probe assembled audio length, tolerating hosts without a decoder."""

        try:
            return self.duration_probe(data, self.audio_format)
        except ValueError as exc:
            logger.warning("audio duration unavailable: {error}", error=str(exc))
            return None
