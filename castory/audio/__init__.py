"""Audio assembly and measurement helpers."""

from .assembly import (
    FrameConcatAssembler,
    SegmentAssembler,
    WavAssembler,
    assembler_for_format,
)
from .duration import probe_duration_seconds

__all__ = [
    "FrameConcatAssembler",
    "SegmentAssembler",
    "WavAssembler",
    "assembler_for_format",
    "probe_duration_seconds",
]
