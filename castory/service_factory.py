"""Collaborator construction from a resolved `CastoryConfig`.

Responsibilities:
- Build provider-backed search, script, speech, and image clients.
- Choose the blob store (hosted HTTP or local filesystem) from configuration.
- Keep CLI wiring independent from concrete collaborator classes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import CastoryConfig
from .drafts.kv import FileKeyValueStore, KeyValueStore
from .imaging.synthesizer import OpenAIImageSynthesizer
from .news.script_writer import OpenAIScriptWriter, ScriptWriter
from .news.search import NewsSearch, OpenAINewsSearch
from .storage.blob import BlobStorage, HttpBlobStorage, LocalBlobStorage
from .storage.documents import DocumentStore, JsonDocumentStore
from .storage.publisher import AssetPublisher
from .synthesis.orchestrator import SynthesisOrchestrator
from .telemetry.usage import UsageTracker
from .tts.synthesizer import OpenAISpeechSynthesizer


@dataclass(slots=True)
class Services:
    """Collaborators shared by CLI commands and the wizard."""

    search: NewsSearch
    script_writer: ScriptWriter
    orchestrator: SynthesisOrchestrator
    publisher: AssetPublisher
    documents: DocumentStore
    draft_store: KeyValueStore
    usage: UsageTracker = field(default_factory=UsageTracker)


class ServiceFactory:
    """Factory for configured collaborators."""

    @staticmethod
    def create_blob_storage(config: CastoryConfig) -> BlobStorage:
        if config.storage_base_url:
            return HttpBlobStorage(
                config.storage_base_url,
                timeout_seconds=config.request_timeout_seconds,
            )
        return LocalBlobStorage(config.storage_dir)

    @staticmethod
    def create_orchestrator(
        config: CastoryConfig,
        api_key: str | None,
        usage: UsageTracker,
    ) -> SynthesisOrchestrator:
        speech = OpenAISpeechSynthesizer(
            model=config.model_tts,
            api_key=api_key,
            response_format=config.tts_response_format,
            max_input_chars=config.tts_max_chars,
            base_url=config.openai_base_url,
            timeout_seconds=config.request_timeout_seconds,
            usage=usage,
        )
        image = OpenAIImageSynthesizer(
            model=config.model_image,
            api_key=api_key,
            size=config.image_size,
            quality=config.image_quality,
            base_url=config.openai_base_url,
            timeout_seconds=config.request_timeout_seconds,
            usage=usage,
        )
        return SynthesisOrchestrator(speech=speech, image=image)

    @staticmethod
    def build(config: CastoryConfig) -> Services:
        """Create every collaborator for `config`.

        A missing API key is not an error here; provider clients raise
        `ConfigurationError` on first use, before any network attempt.
        """

        api_key = config.resolved_api_key()
        usage = UsageTracker()
        return Services(
            search=OpenAINewsSearch(
                model=config.model_search,
                api_key=api_key,
                default_count=config.article_count,
                base_url=config.openai_base_url,
                timeout_seconds=config.request_timeout_seconds,
                usage=usage,
            ),
            script_writer=OpenAIScriptWriter(
                model=config.model_script,
                api_key=api_key,
                base_url=config.openai_base_url,
                timeout_seconds=config.request_timeout_seconds,
                usage=usage,
            ),
            orchestrator=ServiceFactory.create_orchestrator(config, api_key, usage),
            publisher=AssetPublisher(ServiceFactory.create_blob_storage(config)),
            documents=JsonDocumentStore(config.records_path),
            draft_store=FileKeyValueStore(config.draft_dir, config.draft_quota_bytes),
            usage=usage,
        )
