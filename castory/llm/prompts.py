"""Prompt template library for search and script generation.

Responsibilities:
- Centralize prompt construction for news lookup and podcast script writing.
- Map duration bands to approximate word-count targets.
- Provide the default cover-art prompt and auto-filled metadata text.
"""

from __future__ import annotations

from ..models.datatypes import NewsArticle


class PromptLibrary:
    """Build prompt strings for supported generation tasks."""

    _WORD_GUIDES = {
        "short": "~500 words (about 2 minutes)",
        "medium": "~1200 words (about 5 minutes)",
        "long": "~2500 words (about 10 minutes)",
    }

    def word_guide(self, duration: str) -> str:
        """Return the target length guide for a duration band, defaulting to medium."""

        return self._WORD_GUIDES.get(duration, self._WORD_GUIDES["medium"])

    def news_search_prompt(self, topic: str, count: int) -> str:
        """Return the web-search prompt requesting a strict JSON article list."""

        return (
            f"Find the top {count} trending {topic} news articles from today. "
            "Return ONLY a JSON array with no other text. Each item should have: "
            "title (string), summary (2-3 sentence summary), source (publication name), "
            "url (article URL). "
            'Format: [{"title":"...","summary":"...","source":"...","url":"..."}]'
        )

    def script_system_prompt(self, tone: str) -> str:
        """Return the system prompt for spoken podcast scripts."""

        return (
            "You are a podcast script writer. Write engaging, natural-sounding podcast "
            f"scripts that are meant to be read aloud. Use a {tone} tone. Do not include "
            "stage directions, sound effects, or speaker labels, just the spoken text."
        )

    def script_user_prompt(
        self,
        topic: str,
        articles: list[NewsArticle],
        tone: str,
        duration: str,
    ) -> str:
        """Return the user prompt listing the selected articles."""

        article_summaries = "\n".join(
            f'{index}. "{article.title}" ({article.source}): {article.summary}'
            for index, article in enumerate(articles, start=1)
        )
        return (
            f"Write a {tone} podcast script about today's top {topic} news. "
            f"Target length: {self.word_guide(duration)}.\n\n"
            "Articles to cover:\n"
            f"{article_summaries}\n\n"
            "Requirements:\n"
            "- Start with a brief, engaging intro greeting\n"
            "- Cover each article with smooth transitions\n"
            "- Add brief commentary or context where appropriate\n"
            "- End with a natural sign-off\n"
            "- Write ONLY the spoken text, no formatting or labels"
        )

    def cover_art_prompt(self, topic: str) -> str:
        """Return the default thumbnail prompt for a topic."""

        return (
            f"A bold, modern podcast cover art for a {topic} news podcast. Dark background "
            "with vibrant orange accents. Abstract geometric shapes suggesting "
            f"{topic} themes. Bold typography style. Professional and eye-catching."
        )

    def default_title(self, topic: str, date_label: str) -> str:
        """Return the auto-filled podcast title."""

        return f"{topic[:1].upper()}{topic[1:]} News Briefing - {date_label}"

    def default_description(self, topic: str, tone: str, article_count: int) -> str:
        """Return the auto-filled podcast description."""

        return (
            f"A {tone} {topic} news podcast covering {article_count} trending "
            f"{'story' if article_count == 1 else 'stories'}."
        )
