"""News search and script generation collaborators."""

from .script_writer import OpenAIScriptWriter, ScriptWriter
from .search import NewsSearch, OpenAINewsSearch, parse_articles

__all__ = [
    "NewsSearch",
    "OpenAINewsSearch",
    "OpenAIScriptWriter",
    "ScriptWriter",
    "parse_articles",
]
