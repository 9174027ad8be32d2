"""Core datatypes shared across Castory modules.

Responsibilities:
- Represent immutable records exchanged between generation, storage, and wizard code.
- Keep validated shapes at collaborator boundaries explicit.

Key types:
- `Chunk`, `NewsArticle`, `SynthesizedSegment`, `Asset`, `AssetReference`,
  and `PodcastRecord`.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Chunk:
    """A bounded, trimmed slice of a script submitted to one speech call.

    Attributes:
        index: 0-based position fixed by split order.
        text: Chunk text with boundary whitespace trimmed.
    """

    index: int
    text: str


@dataclass(frozen=True, slots=True)
class NewsArticle:
    """One validated search result."""

    title: str
    summary: str
    source: str
    url: str

    def as_payload(self) -> dict[str, str]:
        """Return a JSON-serializable mapping for drafts and prompts."""

        return {
            "title": self.title,
            "summary": self.summary,
            "source": self.source,
            "url": self.url,
        }


@dataclass(frozen=True, slots=True)
class SynthesizedSegment:
    """Raw audio returned by the speech provider for one chunk."""

    chunk_index: int
    data: bytes


@dataclass(frozen=True, slots=True)
class Asset:
    """A finished binary media artifact.

    Attributes:
        data: Complete binary payload.
        content_type: MIME type declared on upload.
        duration_seconds: Playback length for audio assets, when known.
    """

    data: bytes
    content_type: str
    duration_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class AssetReference:
    """Durable URL paired with the blob storage identifier it was resolved from."""

    url: str
    storage_id: str

    def __post_init__(self) -> None:
        if not self.url or not self.storage_id:
            raise ValueError("Asset references require both a URL and a storage identifier.")


@dataclass(frozen=True, slots=True)
class PodcastRecord:
    """Full artifact set submitted to the document store on publish."""

    title: str
    description: str
    audio: AssetReference
    image: AssetReference
    voice: str
    voice_prompt: str
    image_prompt: str
    duration_seconds: float
    views: int = 0
    extra: dict[str, str] = field(default_factory=dict)

    def as_payload(self) -> dict[str, object]:
        """Return the record as a JSON-serializable document."""

        return {
            "podcastTitle": self.title,
            "podcastDescription": self.description,
            "audioUrl": self.audio.url,
            "audioStorageId": self.audio.storage_id,
            "imageUrl": self.image.url,
            "imageStorageId": self.image.storage_id,
            "voiceType": self.voice,
            "voicePrompt": self.voice_prompt,
            "imagePrompt": self.image_prompt,
            "audioDuration": self.duration_seconds,
            "views": self.views,
            **self.extra,
        }
