"""Shared typed data models for Castory.

This package contains dataclasses used across generation, storage, and wizard
modules to avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    Asset,
    AssetReference,
    Chunk,
    NewsArticle,
    PodcastRecord,
    SynthesizedSegment,
)

__all__ = [
    "Asset",
    "AssetReference",
    "Chunk",
    "NewsArticle",
    "PodcastRecord",
    "SynthesizedSegment",
]
