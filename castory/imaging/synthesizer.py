"""Image synthesis collaborator for podcast thumbnails."""

from __future__ import annotations

from typing import Protocol

from ..llm.openai_client import OpenAIImageClient
from ..telemetry.usage import UsageTracker


class ImageSynthesizer(Protocol):
    """Protocol for image providers with a fixed output resolution."""

    content_type: str

    def synthesize(self, prompt: str) -> bytes:
        """Generate one image for `prompt`."""


class OpenAIImageSynthesizer:
    """OpenAI-backed thumbnail generator."""

    content_type = "image/png"

    def __init__(
        self,
        model: str = "dall-e-3",
        api_key: str | None = None,
        size: str = "1024x1024",
        quality: str = "standard",
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 120.0,
        usage: UsageTracker | None = None,
    ) -> None:
        self.model = model
        self.size = size
        self.quality = quality
        self.client = OpenAIImageClient(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )
        self.usage = usage if usage is not None else UsageTracker()

    def synthesize(self, prompt: str) -> bytes:
        image = self.client.generate_image(
            model=self.model,
            prompt=prompt,
            size=self.size,
            quality=self.quality,
        )
        self.usage.add_image_call()
        return image
