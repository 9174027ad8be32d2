"""Podcast script generation collaborator.

Responsibilities:
- Define the protocol for turning selected articles into a spoken script.
- Provide an OpenAI chat-completions backed implementation.
"""

from __future__ import annotations

from typing import Protocol

from ..llm.openai_client import OpenAIChatClient
from ..llm.prompts import PromptLibrary
from ..models.datatypes import NewsArticle
from ..telemetry.usage import UsageTracker


class ScriptWriter(Protocol):
    """Protocol for script generation providers."""

    def generate_script(
        self,
        topic: str,
        articles: list[NewsArticle],
        tone: str,
        duration: str,
    ) -> str:
        """Return spoken podcast text covering the given articles."""


class OpenAIScriptWriter:
    """OpenAI-backed podcast script writer."""

    def __init__(
        self,
        model: str = "gpt-4.1-mini",
        api_key: str | None = None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 120.0,
        usage: UsageTracker | None = None,
    ) -> None:
        self.model = model
        self.client = OpenAIChatClient(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )
        self.prompts = PromptLibrary()
        self.usage = usage if usage is not None else UsageTracker()

    def generate_script(
        self,
        topic: str,
        articles: list[NewsArticle],
        tone: str,
        duration: str,
    ) -> str:
        """Generate one script with OpenAI chat-completions."""

        script = self.client.chat_completion_text(
            model=self.model,
            system_prompt=self.prompts.script_system_prompt(tone),
            user_prompt=self.prompts.script_user_prompt(topic, articles, tone, duration),
        )
        self.usage.add_text_call()
        return script
