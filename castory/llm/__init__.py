"""OpenAI-facing HTTP clients and prompt templates."""

from .openai_client import (
    OpenAIChatClient,
    OpenAIImageClient,
    OpenAIResponsesClient,
    OpenAISpeechClient,
)
from .prompts import PromptLibrary

__all__ = [
    "OpenAIChatClient",
    "OpenAIImageClient",
    "OpenAIResponsesClient",
    "OpenAISpeechClient",
    "PromptLibrary",
]
