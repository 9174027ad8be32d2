"""News search collaborator.

Responsibilities:
- Define the protocol for topic-based news lookup.
- Provide an OpenAI web-search backed implementation.
- Parse and validate provider output into `NewsArticle` records at the boundary.
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

from ..errors import UpstreamError
from ..llm.openai_client import OpenAIResponsesClient
from ..llm.prompts import PromptLibrary
from ..models.datatypes import NewsArticle
from ..telemetry.usage import UsageTracker

_JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
_ARTICLE_FIELDS = ("title", "summary", "source", "url")


class NewsSearch(Protocol):
    """Protocol for news search providers."""

    def search_news(self, topic: str, count: int | None = None) -> list[NewsArticle]:
        """Return today's trending articles for a topic, in provider order."""


def parse_articles(raw_text: str) -> list[NewsArticle]:
    """Extract the first JSON array from provider text and validate each article.

    Raises:
        UpstreamError: If no array is present, it is not valid JSON, or any
            item lacks one of the required string fields.
    """

    match = _JSON_ARRAY_PATTERN.search(raw_text)
    if match is None:
        raise _parse_error("Failed to parse news articles from search results.")
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise _parse_error("Search results contain an invalid JSON article list.") from exc
    if not isinstance(payload, list):
        raise _parse_error("Search results must be a JSON array of articles.")
    return [_parse_article(item, position) for position, item in enumerate(payload, start=1)]


def _parse_article(item: Any, position: int) -> NewsArticle:
    """Validate one raw article mapping."""

    if not isinstance(item, dict):
        raise _parse_error(f"Article {position} is not a JSON object.")
    values: dict[str, str] = {}
    for name in _ARTICLE_FIELDS:
        value = item.get(name)
        if not isinstance(value, str):
            raise _parse_error(f"Article {position} is missing string field `{name}`.")
        values[name] = value.strip()
    if not values["title"]:
        raise _parse_error(f"Article {position} has an empty title.")
    return NewsArticle(**values)


def _parse_error(detail: str) -> UpstreamError:
    return UpstreamError(
        stage="search",
        detail=detail,
        hint="Retry the search; the provider returned an unexpected format.",
        failure_kind="unparseable",
    )


class OpenAINewsSearch:
    """OpenAI web-search backed news lookup."""

    def __init__(
        self,
        model: str = "gpt-4.1-mini",
        api_key: str | None = None,
        default_count: int = 5,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 120.0,
        usage: UsageTracker | None = None,
    ) -> None:
        self.model = model
        self.default_count = default_count
        self.client = OpenAIResponsesClient(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )
        self.prompts = PromptLibrary()
        self.usage = usage if usage is not None else UsageTracker()

    def search_news(self, topic: str, count: int | None = None) -> list[NewsArticle]:
        """Search today's news for `topic` and return validated articles."""

        resolved_count = count if count is not None else self.default_count
        raw_text = self.client.web_search_text(
            model=self.model,
            prompt=self.prompts.news_search_prompt(topic, resolved_count),
        )
        self.usage.add_text_call()
        return parse_articles(raw_text)
