"""Command-line interface for Castory.

Responsibilities:
- Expose single-stage commands (segment, search, script, audio, thumbnail).
- Run the interactive authoring wizard with draft restore and persistence.
- Run the manual single-form flow (`create --manual`) with its own draft.
- Inspect and discard the saved draft.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Annotated, Callable

import typer

from .cli_rendering import (
    echo_article_list,
    echo_chunk_summary,
    echo_session_status,
    echo_usage_summary,
    exit_with_command_error,
)
from .cli_runtime import apply_runtime_sources, load_command_config, resolve_api_key_sources
from .config import CastoryConfig
from .credentials import create_credential_store
from .drafts.kv import FileKeyValueStore
from .drafts.store import DraftPersistence, read_draft
from .errors import CastoryError, ConfigurationError, TransitionBlockedError
from .news.search import parse_articles
from .parsing import normalize_optional_string, parse_index_list
from .service_factory import ServiceFactory, Services
from .storage.documents import AuthorIdentity
from .telemetry.logger import configure_logging
from .text.segmenter import TextSegmenter
from .tts.voices import VOICE_NAMES
from .wizard.coordinator import PodcastWizard
from .wizard.manual import ManualPodcastWizard
from .wizard.session import MANUAL_DRAFT_FIELDS, Step, WizardSession, from_draft
from .wizard.transitions import (
    ArticleToggled,
    DescriptionEdited,
    DurationChosen,
    ImagePromptEdited,
    ScriptEdited,
    TitleEdited,
    ToneChosen,
    VoiceChosen,
    VoicePromptEdited,
)
from .wizard.unload_guard import InterruptConfirmHook, UnloadGuard

app = typer.Typer(
    name="castory",
    no_args_is_help=True,
    help="Castory news podcast authoring CLI.",
)
draft_app = typer.Typer(help="Inspect or discard the saved wizard draft.")
app.add_typer(draft_app, name="draft")

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with command defaults."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="OpenAI API key override. Prefer `--prompt-api-key` to avoid shell history.",
    ),
]
PromptApiKeyOption = Annotated[
    bool,
    typer.Option("--prompt-api-key", help="Prompt for API key with hidden input (never echoed)."),
]
StoreApiKeyOption = Annotated[
    bool,
    typer.Option(
        "--store-api-key/--no-store-api-key",
        help="Persist CLI-entered API key to secure credential storage.",
    ),
]


class EchoNotifier:
    """Print wizard notifications to the terminal."""

    def notify(self, title: str, detail: str | None = None, *, error: bool = False) -> None:
        message = title if not detail else f"{title}: {detail}"
        if error:
            typer.secho(message, fg=typer.colors.RED, err=True)
        else:
            typer.secho(message, fg=typer.colors.GREEN)


def _resolve_config(
    config_file: Path | None,
    api_key: str | None = None,
    prompt_api_key: bool = False,
    store_api_key: bool = True,
) -> CastoryConfig:
    """Load config and attach CLI/secure API key sources."""

    config = load_command_config(config_file)
    runtime_cli_values, runtime_secure_values = resolve_api_key_sources(
        api_key=api_key,
        prompt_api_key=prompt_api_key,
        store_api_key=store_api_key,
        credential_store_factory=create_credential_store,
    )
    return apply_runtime_sources(config, runtime_cli_values, runtime_secure_values)


def _build_services(config: CastoryConfig) -> Services:
    return ServiceFactory.build(config)


@app.command("segment")
def segment_command(
    script_file: Annotated[Path, typer.Argument(help="Text file with the podcast script.")],
    max_chars: Annotated[
        int,
        typer.Option("--max-chars", min=1, help="Maximum characters per chunk."),
    ] = 4096,
) -> None:
    """Show how a script splits into speech-sized chunks."""

    try:
        text = script_file.read_text(encoding="utf-8")
        chunks = TextSegmenter().segment(text, max_chars)
    except (OSError, ValueError) as exc:
        exit_with_command_error("segment", exc)

    echo_chunk_summary(chunks, max_chars)


@app.command("search")
def search_command(
    topic: Annotated[str, typer.Argument(help="News topic, for example `technology`.")],
    count: Annotated[
        int | None,
        typer.Option("--count", min=1, help="Number of articles to request."),
    ] = None,
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
) -> None:
    """Search today's trending news for a topic."""

    try:
        config = _resolve_config(config_file, api_key, prompt_api_key, store_api_key)
        services = _build_services(config)
        articles = services.search.search_news(topic, count)
    except (CastoryError, ValueError) as exc:
        exit_with_command_error("search", exc)

    typer.echo(f"Articles: {len(articles)}")
    echo_article_list(articles)


@app.command("script")
def script_command(
    topic: Annotated[str, typer.Argument(help="News topic the script covers.")],
    articles_file: Annotated[
        Path,
        typer.Option("--articles", help="JSON file with an array of articles."),
    ],
    tone: Annotated[str | None, typer.Option("--tone", help="Tone label, e.g. `casual`.")] = None,
    duration: Annotated[
        str | None,
        typer.Option("--duration", help="Length band: `short`, `medium`, or `long`."),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Write the script to this file instead of stdout."),
    ] = None,
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
) -> None:
    """Generate a podcast script from saved articles."""

    try:
        config = _resolve_config(config_file, api_key, prompt_api_key, store_api_key)
        articles = parse_articles(articles_file.read_text(encoding="utf-8"))
        services = _build_services(config)
        script = services.script_writer.generate_script(
            topic,
            articles,
            tone or config.default_tone,
            duration or config.default_duration,
        )
        if out is not None:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(script, encoding="utf-8")
    except (CastoryError, OSError, ValueError) as exc:
        exit_with_command_error("script", exc)

    if out is None:
        typer.echo(script)
    else:
        typer.echo(f"Script: {out} ({len(script)} chars)")


@app.command("audio")
def audio_command(
    script_file: Annotated[Path, typer.Argument(help="Text file with the podcast script.")],
    voice: Annotated[str, typer.Option("--voice", help=f"One of: {', '.join(VOICE_NAMES)}.")],
    out: Annotated[Path, typer.Option("--out", help="Output audio file.")],
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
) -> None:
    """Synthesize a full script into one audio file."""

    try:
        config = _resolve_config(config_file, api_key, prompt_api_key, store_api_key)
        script = script_file.read_text(encoding="utf-8")
        services = _build_services(config)
        asset = services.orchestrator.synthesize_audio(script, voice)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(asset.data)
    except (CastoryError, OSError, ValueError) as exc:
        exit_with_command_error("audio", exc)

    typer.echo(f"Audio: {out}")
    if asset.duration_seconds is not None:
        typer.echo(f"Duration: {asset.duration_seconds:.1f}s")
    echo_usage_summary(services.usage.summary())


@app.command("thumbnail")
def thumbnail_command(
    prompt: Annotated[str, typer.Argument(help="Image prompt for the cover art.")],
    out: Annotated[Path, typer.Option("--out", help="Output image file.")],
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
) -> None:
    """Generate one thumbnail image."""

    try:
        config = _resolve_config(config_file, api_key, prompt_api_key, store_api_key)
        services = _build_services(config)
        asset = services.orchestrator.synthesize_image(prompt)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(asset.data)
    except (CastoryError, OSError, ValueError) as exc:
        exit_with_command_error("thumbnail", exc)

    typer.echo(f"Thumbnail: {out}")


def _sync_selection(wizard: PodcastWizard, wanted: list[int]) -> None:
    """Toggle articles until the selection matches `wanted`."""

    current = set(wizard.session.selected_indexes)
    for index in sorted(current.symmetric_difference(wanted)):
        wizard.dispatch(ArticleToggled(index))


def _topic_step(wizard: PodcastWizard, config: CastoryConfig, topic: str | None, assume_yes: bool) -> None:
    session = wizard.session
    chosen = normalize_optional_string(topic) or session.topic
    if not assume_yes or chosen is None:
        chosen = typer.prompt("Topic", default=chosen or "technology").strip()
    if session.articles and chosen == session.topic:
        if assume_yes or not typer.confirm("Search again?", default=False):
            return
    wizard.search(chosen, config.article_count)


def _articles_step(wizard: PodcastWizard, assume_yes: bool) -> None:
    session = wizard.session
    echo_article_list(list(session.articles), session.selected_indexes)
    if not assume_yes:
        default_selection = ",".join(str(index + 1) for index in session.selected_indexes)
        raw = typer.prompt("Select articles (e.g. 1,3-4)", default=default_selection)
        try:
            wanted = parse_index_list(raw, len(session.articles))
        except ValueError as exc:
            typer.secho(f"Invalid selection: {exc}", fg=typer.colors.RED, err=True)
            return
        _sync_selection(wizard, wanted)
        wizard.dispatch(
            ToneChosen(typer.prompt("Tone", default=session.tone).strip()),
            DurationChosen(
                typer.prompt("Duration (short/medium/long)", default=session.duration).strip()
            ),
        )
    session = wizard.session
    regenerate = bool(session.script.strip()) and not assume_yes and typer.confirm(
        "Regenerate script?", default=False
    )
    if not session.script.strip() or regenerate:
        wizard.generate_script()


def _script_step(wizard: PodcastWizard, assume_yes: bool) -> None:
    session = wizard.session
    preview = session.script if len(session.script) <= 400 else f"{session.script[:400]}..."
    typer.echo(preview)
    if assume_yes:
        return
    if typer.confirm("Edit script in your editor?", default=False):
        edited = typer.edit(session.script)
        if edited is not None:
            wizard.dispatch(ScriptEdited(edited.strip()))
    session = wizard.session
    wizard.dispatch(
        TitleEdited(typer.prompt("Title", default=session.title).strip()),
        DescriptionEdited(typer.prompt("Description", default=session.description).strip()),
    )


def _media_step(
    wizard: PodcastWizard,
    config: CastoryConfig,
    voice: str | None,
    thumbnail_file: Path | None,
    assume_yes: bool,
    ask_image_prompt: bool = True,
) -> None:
    session = wizard.session
    chosen_voice = normalize_optional_string(voice) or session.voice
    if not assume_yes or chosen_voice is None:
        chosen_voice = typer.prompt(
            f"Voice ({', '.join(VOICE_NAMES)})",
            default=chosen_voice or VOICE_NAMES[0],
        ).strip()
    wizard.dispatch(VoiceChosen(chosen_voice))
    if ask_image_prompt and not assume_yes and thumbnail_file is None:
        wizard.dispatch(
            ImagePromptEdited(
                typer.prompt("Thumbnail prompt", default=session.image_prompt).strip()
            )
        )

    session = wizard.session
    needs_audio = session.audio is None or (
        not assume_yes and typer.confirm("Regenerate audio?", default=False)
    )
    needs_image = False
    if thumbnail_file is not None:
        if session.image is None:
            content_type = mimetypes.guess_type(thumbnail_file.name)[0] or "image/png"
            wizard.upload_image(thumbnail_file.read_bytes(), content_type)
    else:
        needs_image = session.image is None or (
            not assume_yes and typer.confirm("Regenerate thumbnail?", default=False)
        )

    if needs_audio and needs_image and config.concurrent_media:
        wizard.generate_media()
        return
    if needs_audio:
        wizard.generate_audio()
    if needs_image:
        wizard.generate_image()


def _publish_step(wizard: PodcastWizard, assume_yes: bool) -> str | None:
    echo_session_status(wizard.session, wizard.last_saved)
    if not assume_yes and not typer.confirm("Publish now?", default=True):
        return None
    return wizard.publish()


def _next_action(wizard: PodcastWizard, assume_yes: bool) -> str:
    """Ask where to go after a step; `--yes` runs fail fast instead."""

    blockers = wizard.forward_blockers()
    if assume_yes:
        if blockers:
            raise TransitionBlockedError(
                step=wizard.session.step.name.lower(),
                reasons=tuple(blockers),
            )
        return "next"
    if blockers:
        typer.secho(f"Blocked: {'; '.join(blockers)}", fg=typer.colors.YELLOW)
    default = "retry" if blockers else "next"
    return typer.prompt("Next action [next/back/retry/quit/discard]", default=default).strip().lower()


def run_wizard(
    wizard: PodcastWizard,
    config: CastoryConfig,
    topic: str | None = None,
    voice: str | None = None,
    thumbnail_file: Path | None = None,
    assume_yes: bool = False,
) -> str | None:
    """Drive the wizard until publish or quit; returns the record id when published."""

    handlers: dict[Step, Callable[[], None]] = {
        Step.TOPIC: lambda: _topic_step(wizard, config, topic, assume_yes),
        Step.ARTICLES: lambda: _articles_step(wizard, assume_yes),
        Step.SCRIPT: lambda: _script_step(wizard, assume_yes),
        Step.MEDIA: lambda: _media_step(wizard, config, voice, thumbnail_file, assume_yes),
    }
    wizard.start()
    while not wizard.ended:
        step = wizard.session.step
        typer.echo(f"== Step {step.value + 1}/5: {step.name.lower()} ==")
        if step == Step.PUBLISH:
            record_id = _publish_step(wizard, assume_yes)
            if record_id is not None:
                return record_id
            if assume_yes:
                raise CastoryError(stage="publish", detail="Podcast was not published.")
            action = typer.prompt("Next action [back/retry/quit/discard]", default="retry").strip().lower()
        else:
            handlers[step]()
            action = _next_action(wizard, assume_yes)

        if action == "next":
            try:
                wizard.advance()
            except TransitionBlockedError as exc:
                typer.secho(exc.detail, fg=typer.colors.YELLOW)
        elif action == "back":
            wizard.go_back()
        elif action == "quit":
            wizard.close(flush=True)
            typer.echo("Draft kept; run `castory create` again to resume.")
            return None
        elif action == "discard":
            wizard.discard_draft()
            wizard.close()
            typer.echo("Draft discarded.")
            return None
    return None


def _manual_form_step(
    wizard: PodcastWizard,
    title: str | None,
    description: str | None,
    voice_prompt: str | None,
    image_prompt: str | None,
    assume_yes: bool,
) -> None:
    """Fill the hand-written fields; options win over the restored draft."""

    session = wizard.session
    chosen_title = normalize_optional_string(title) or session.title
    chosen_description = normalize_optional_string(description) or session.description
    chosen_voice_prompt = normalize_optional_string(voice_prompt) or session.voice_prompt
    chosen_image_prompt = normalize_optional_string(image_prompt) or session.image_prompt
    if not assume_yes:
        chosen_title = typer.prompt("Title", default=chosen_title).strip()
        chosen_description = typer.prompt("Description", default=chosen_description).strip()
        if typer.confirm("Write voice prompt in your editor?", default=False):
            edited = typer.edit(chosen_voice_prompt)
            if edited is not None:
                chosen_voice_prompt = edited.strip()
        else:
            chosen_voice_prompt = typer.prompt("Voice prompt", default=chosen_voice_prompt).strip()
        chosen_image_prompt = typer.prompt(
            "Thumbnail prompt", default=chosen_image_prompt
        ).strip()
    wizard.dispatch(
        TitleEdited(chosen_title),
        DescriptionEdited(chosen_description),
        VoicePromptEdited(chosen_voice_prompt),
        ImagePromptEdited(chosen_image_prompt),
    )


def run_manual_wizard(
    wizard: ManualPodcastWizard,
    config: CastoryConfig,
    voice: str | None = None,
    thumbnail_file: Path | None = None,
    assume_yes: bool = False,
    title: str | None = None,
    description: str | None = None,
    voice_prompt: str | None = None,
    image_prompt: str | None = None,
) -> str | None:
    """Drive the single-form flow until publish or quit."""

    wizard.start()
    while not wizard.ended:
        _manual_form_step(wizard, title, description, voice_prompt, image_prompt, assume_yes)
        # Prompts from the form step already cover the thumbnail prompt.
        _media_step(wizard, config, voice, thumbnail_file, assume_yes, ask_image_prompt=False)
        record_id = _publish_step(wizard, assume_yes)
        if record_id is not None:
            return record_id
        if assume_yes:
            raise CastoryError(stage="publish", detail="Podcast was not published.")
        action = typer.prompt("Next action [retry/quit/discard]", default="retry").strip().lower()
        if action == "quit":
            wizard.close(flush=True)
            typer.echo("Draft kept; run `castory create --manual` again to resume.")
            return None
        if action == "discard":
            wizard.discard_draft()
            wizard.close()
            typer.echo("Draft discarded.")
            return None
    return None


@app.command("create")
def create_command(
    topic: Annotated[str | None, typer.Option("--topic", help="News topic to start with.")] = None,
    voice: Annotated[str | None, typer.Option("--voice", help="Narration voice.")] = None,
    thumbnail_file: Annotated[
        Path | None,
        typer.Option("--thumbnail", help="Use this image file instead of generating one."),
    ] = None,
    manual: Annotated[
        bool,
        typer.Option("--manual", help="Write title, description, and narration yourself."),
    ] = False,
    title: Annotated[str | None, typer.Option("--title", help="Manual podcast title.")] = None,
    description: Annotated[
        str | None, typer.Option("--description", help="Manual podcast description.")
    ] = None,
    voice_prompt_file: Annotated[
        Path | None,
        typer.Option("--voice-prompt-file", help="Text file with the narration for manual mode."),
    ] = None,
    image_prompt: Annotated[
        str | None, typer.Option("--image-prompt", help="Thumbnail prompt for manual mode.")
    ] = None,
    author: Annotated[
        str | None,
        typer.Option("--author", envvar="CASTORY_AUTHOR", help="Author identity for publishing."),
    ] = None,
    assume_yes: Annotated[
        bool,
        typer.Option("--yes", help="Accept defaults and fail instead of prompting."),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Emit step logs.")] = False,
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
) -> None:
    """Run the topic-to-publish podcast wizard, or the manual form with `--manual`."""

    configure_logging(level="INFO" if verbose else "WARNING")
    wizard: PodcastWizard | None = None
    try:
        config = _resolve_config(config_file, api_key, prompt_api_key, store_api_key)
        services = _build_services(config)
        identity = AuthorIdentity(subject=author) if normalize_optional_string(author) else None
        shared = dict(
            orchestrator=services.orchestrator,
            publisher=services.publisher,
            documents=services.documents,
            draft_store=services.draft_store,
            identity=identity,
            notifier=EchoNotifier(),
            unload_guard=UnloadGuard(InterruptConfirmHook()),
            debounce_seconds=config.debounce_seconds,
            activation_delay_seconds=config.activation_delay_seconds,
        )
        if manual:
            voice_prompt = (
                voice_prompt_file.read_text(encoding="utf-8")
                if voice_prompt_file is not None
                else None
            )
            wizard = ManualPodcastWizard(draft_key=config.manual_draft_key, **shared)
            record_id = run_manual_wizard(
                wizard,
                config,
                voice,
                thumbnail_file,
                assume_yes,
                title=title,
                description=description,
                voice_prompt=voice_prompt,
                image_prompt=image_prompt,
            )
        else:
            wizard = PodcastWizard(
                search=services.search,
                script_writer=services.script_writer,
                draft_key=config.draft_key,
                defaults=WizardSession(tone=config.default_tone, duration=config.default_duration),
                **shared,
            )
            record_id = run_wizard(wizard, config, topic, voice, thumbnail_file, assume_yes)
    except (CastoryError, OSError, ValueError) as exc:
        if wizard is not None:
            wizard.close(flush=True)
        exit_with_command_error("create", exc)

    if record_id is not None:
        typer.echo(f"Podcast id: {record_id}")
        echo_usage_summary(services.usage.summary())


def _draft_store(config: CastoryConfig) -> FileKeyValueStore:
    return FileKeyValueStore(config.draft_dir, config.draft_quota_bytes)


ManualDraftOption = Annotated[
    bool,
    typer.Option("--manual", help="Use the manual podcast draft instead of the news wizard draft."),
]


@draft_app.command("show")
def draft_show_command(config_file: ConfigOption = None, manual: ManualDraftOption = False) -> None:
    """Show the saved wizard draft."""

    try:
        config = load_command_config(config_file)
    except ConfigurationError as exc:
        exit_with_command_error("draft show", exc)

    key = config.manual_draft_key if manual else config.draft_key
    payload = read_draft(_draft_store(config), key)
    if payload is None:
        typer.echo("No saved draft.")
        return
    if manual:
        echo_session_status(from_draft(payload, WizardSession(step=Step.MEDIA), MANUAL_DRAFT_FIELDS), None)
    else:
        echo_session_status(from_draft(payload), None)


@draft_app.command("discard")
def draft_discard_command(config_file: ConfigOption = None, manual: ManualDraftOption = False) -> None:
    """Delete the saved wizard draft."""

    try:
        config = load_command_config(config_file)
    except ConfigurationError as exc:
        exit_with_command_error("draft discard", exc)

    key = config.manual_draft_key if manual else config.draft_key
    DraftPersistence(_draft_store(config), key).discard()
    typer.echo("Draft discarded.")


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option("--set-api-key", help="Prompt for API key with hidden input and store it securely."),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option("--clear-api-key", help="Clear stored API key from secure credential storage."),
    ] = False,
) -> None:
    """Manage the securely stored OpenAI API key."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            ConfigurationError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "OpenAI API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                ConfigurationError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except (RuntimeError, ValueError) as exc:
            exit_with_command_error(
                "credentials",
                ConfigurationError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key()
        typer.echo("Stored API key removed." if removed else "No stored API key found.")
        return

    stored = credential_store.get_api_key() is not None
    typer.echo(f"Stored API key: {'present' if stored else 'not set'}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
