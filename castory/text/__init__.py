"""Text processing helpers for speech synthesis."""

from .segmenter import TextSegmenter, segment

__all__ = ["TextSegmenter", "segment"]
