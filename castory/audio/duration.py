"""Audio duration probing for published podcast records."""

from __future__ import annotations

import io
import wave

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError


def probe_duration_seconds(data: bytes, audio_format: str) -> float:
    """Return the playback length of an audio payload in seconds.

    WAV payloads are measured from their header; other formats are decoded
    with `pydub`, which requires `ffmpeg` on the host.

    Raises:
        ValueError: If the payload cannot be decoded.
    """

    if audio_format == "wav":
        try:
            with wave.open(io.BytesIO(data), "rb") as wav_file:
                frame_count = wav_file.getnframes()
                sample_rate = wav_file.getframerate()
        except (wave.Error, EOFError) as exc:
            raise ValueError("Audio payload is not a readable WAV file.") from exc
        if sample_rate <= 0:
            raise ValueError("Audio payload has an invalid WAV sample rate.")
        return frame_count / float(sample_rate)

    try:
        segment = AudioSegment.from_file(io.BytesIO(data), format=audio_format)
    except (CouldntDecodeError, OSError) as exc:
        raise ValueError(f"Audio payload could not be decoded as `{audio_format}`.") from exc
    return float(segment.duration_seconds)
