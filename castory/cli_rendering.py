"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
article lists, chunk summaries, wizard status, and usage counters.
"""

from __future__ import annotations

from datetime import datetime
from typing import NoReturn

import typer

from .errors import CastoryError
from .models.datatypes import Chunk, NewsArticle
from .wizard.session import WizardSession


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, CastoryError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_chunk_summary(chunks: list[Chunk], max_chars: int) -> None:
    """Print chunk count and per-chunk lengths."""

    typer.echo(f"Chunks: {len(chunks)} (max {max_chars} chars)")
    for chunk in chunks:
        typer.echo(f"{chunk.index + 1}. {len(chunk.text)} chars")


def echo_article_list(articles: list[NewsArticle], selected: tuple[int, ...] | None = None) -> None:
    """Print 1-based article rows, marking selected ones when a selection is given."""

    for index, article in enumerate(articles):
        marker = ""
        if selected is not None:
            marker = "[x] " if index in selected else "[ ] "
        typer.echo(f"{index + 1}. {marker}{article.title} ({article.source})")
        if article.summary:
            typer.echo(f"   {article.summary}")


def echo_session_status(session: WizardSession, last_saved: datetime | None) -> None:
    """Print the wizard step, key fields, and draft save time."""

    typer.echo(f"Step: {session.step.value + 1}/5 {session.step.name.lower()}")
    typer.echo(f"Topic: {session.topic or '(none)'}")
    typer.echo(f"Articles: {len(session.selected_indexes)}/{len(session.articles)} selected")
    typer.echo(f"Script: {len(session.script)} chars")
    typer.echo(f"Title: {session.title or '(none)'}")
    typer.echo(f"Voice: {session.voice or '(none)'}")
    typer.echo(f"Audio: {session.audio.url if session.audio else '(not generated)'}")
    typer.echo(f"Thumbnail: {session.image.url if session.image else '(not generated)'}")
    if last_saved is not None:
        typer.echo(f"Draft saved: {last_saved:%H:%M:%S}")


def echo_usage_summary(summary: dict[str, int]) -> None:
    """Print billable provider usage counters."""

    typer.echo(
        "Usage: "
        f"text_calls={summary['text_calls']} "
        f"speech_calls={summary['speech_calls']} "
        f"speech_chars={summary['speech_characters']} "
        f"image_calls={summary['image_calls']}"
    )
