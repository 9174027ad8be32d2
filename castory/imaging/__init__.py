"""Image synthesis abstractions."""

from .synthesizer import ImageSynthesizer, OpenAIImageSynthesizer

__all__ = ["ImageSynthesizer", "OpenAIImageSynthesizer"]
