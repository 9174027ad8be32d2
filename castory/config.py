"""Configuration model and loaders for Castory.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Resolve the provider API key with deterministic source precedence.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `CastoryConfig`: normalized settings for generation, storage, and drafts.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `CastoryConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError
from .parsing import (
    normalize_optional_string,
    parse_permissive_boolean,
    parse_positive_number,
)


_DEFAULT_DRAFT_KEY = "castory:draft:news-podcast"
_DEFAULT_MANUAL_DRAFT_KEY = "castory:draft:podcast"
_SUPPORTED_DURATIONS = frozenset({"short", "medium", "long"})
_SUPPORTED_AUDIO_FORMATS = frozenset({"mp3", "aac", "opus", "wav"})


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class CastoryConfig:
    """Runtime configuration for one authoring session.

    Attributes:
        api_key: Optional OpenAI API key (lowest-precedence source).
        openai_base_url: Base URL for OpenAI REST calls.
        request_timeout_seconds: Network-layer timeout passed to `requests`.
        model_search: Model used for web-search backed news lookup.
        model_script: Model used for podcast script generation.
        model_tts: Speech synthesis model.
        model_image: Image synthesis model.
        tts_max_chars: Maximum characters accepted by one speech call.
        tts_response_format: Audio container returned by the speech provider.
        image_size: Fixed image synthesis resolution.
        image_quality: Image synthesis quality label.
        article_count: Default number of articles requested per search.
        default_tone: Tone label used when the author picks none.
        default_duration: Duration band used when the author picks none.
        draft_dir: Directory backing the client-local draft store.
        draft_key: Key under which the news podcast draft is stored.
        manual_draft_key: Key under which the manual podcast draft is stored.
        draft_quota_bytes: Maximum serialized bytes the draft store accepts.
        debounce_seconds: Quiescent interval before a draft write fires.
        activation_delay_seconds: Delay after session start before drafts are written.
        concurrent_media: Generate audio and thumbnail side by side in the wizard.
        storage_dir: Directory backing the local blob store.
        storage_base_url: Optional HTTP blob service; local storage is used when unset.
        records_path: JSON file backing the local document store.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    request_timeout_seconds: float = 120.0
    model_search: str = "gpt-4.1-mini"
    model_script: str = "gpt-4.1-mini"
    model_tts: str = "tts-1"
    model_image: str = "dall-e-3"
    tts_max_chars: int = 4096
    tts_response_format: str = "mp3"
    image_size: str = "1024x1024"
    image_quality: str = "standard"
    article_count: int = 5
    default_tone: str = "casual"
    default_duration: str = "medium"
    draft_dir: Path = Path(".castory/drafts")
    draft_key: str = _DEFAULT_DRAFT_KEY
    manual_draft_key: str = _DEFAULT_MANUAL_DRAFT_KEY
    draft_quota_bytes: int = 5 * 1024 * 1024
    debounce_seconds: float = 0.5
    activation_delay_seconds: float = 0.75
    concurrent_media: bool = True
    storage_dir: Path = Path(".castory/storage")
    storage_base_url: str | None = None
    records_path: Path = Path(".castory/podcasts.json")
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate configuration values before any collaborator is built."""

        for name in (
            "openai_base_url",
            "model_search",
            "model_script",
            "model_tts",
            "model_image",
            "image_size",
            "image_quality",
            "default_tone",
            "draft_key",
            "manual_draft_key",
        ):
            self._require_non_empty(getattr(self, name), name)
        if self.manual_draft_key == self.draft_key:
            raise ValueError("`manual_draft_key` must differ from `draft_key`.")
        for name in ("tts_max_chars", "article_count", "draft_quota_bytes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"`{name}` must be a positive integer.")
        if self.request_timeout_seconds <= 0.0:
            raise ValueError("`request_timeout_seconds` must be a positive number.")
        if self.debounce_seconds <= 0.0:
            raise ValueError("`debounce_seconds` must be a positive number.")
        if self.activation_delay_seconds <= self.debounce_seconds:
            raise ValueError(
                "`activation_delay_seconds` must be longer than `debounce_seconds`."
            )
        if self.default_duration not in _SUPPORTED_DURATIONS:
            supported = ", ".join(sorted(_SUPPORTED_DURATIONS))
            raise ValueError(f"`default_duration` must be one of: {supported}.")
        if self.tts_response_format not in _SUPPORTED_AUDIO_FORMATS:
            supported = ", ".join(sorted(_SUPPORTED_AUDIO_FORMATS))
            raise ValueError(f"`tts_response_format` must be one of: {supported}.")

    def resolved_api_key(self, sources: RuntimeConfigSources | None = None) -> str | None:
        """Resolve the provider API key.

        Precedence is `cli` > `secure` > `env` (`OPENAI_API_KEY`) > config value.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        for mapping, key in (
            (resolved_sources.cli, "api_key"),
            (resolved_sources.secure, "api_key"),
            (resolved_sources.env, "OPENAI_API_KEY"),
        ):
            value = normalize_optional_string(mapping.get(key)) if key in mapping else None
            if value is not None:
                return value
        return normalize_optional_string(self.api_key)

    def require_api_key(self, stage: str) -> str:
        """Return the resolved API key or fail before any network attempt."""

        api_key = self.resolved_api_key()
        if api_key is None:
            raise ConfigurationError(
                stage=stage,
                detail="OPENAI_API_KEY is not set.",
                hint="Set `OPENAI_API_KEY`, use `--api-key`, or store a key with `--prompt-api-key`.",
            )
        return api_key

    @staticmethod
    def _require_non_empty(value: object, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `CastoryConfig` from external sources."""

    _PATH_KEYS = frozenset({"draft_dir", "storage_dir", "records_path"})
    _INT_KEYS = frozenset({"tts_max_chars", "article_count", "draft_quota_bytes"})
    _FLOAT_KEYS = frozenset(
        {"request_timeout_seconds", "debounce_seconds", "activation_delay_seconds"}
    )
    _ENV_PREFIX = "CASTORY_"

    @staticmethod
    def supported_keys() -> frozenset[str]:
        """Return the configuration keys accepted from YAML and environment sources."""

        return frozenset(
            item.name for item in fields(CastoryConfig) if item.name != "runtime_sources"
        )

    @staticmethod
    def from_yaml(path: Path) -> CastoryConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader.from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> CastoryConfig:
        """Create a validated config from `CASTORY_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for key in ConfigLoader.supported_keys():
            value = normalize_optional_string(env_map.get(f"{ConfigLoader._ENV_PREFIX}{key.upper()}"))
            if value is not None:
                payload[key] = value
        config = ConfigLoader.from_mapping(payload, source_label="environment")
        runtime_env: dict[str, str] = {}
        env_api_key = normalize_optional_string(env_map.get("OPENAI_API_KEY"))
        if env_api_key is not None:
            runtime_env["OPENAI_API_KEY"] = env_api_key
        config.runtime_sources = RuntimeConfigSources(env=runtime_env)
        return config

    @staticmethod
    def from_mapping(payload: Mapping[str, Any], source_label: str) -> CastoryConfig:
        """Build a validated config from a mapping of raw values."""

        unknown = sorted(set(payload).difference(ConfigLoader.supported_keys()))
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        values: dict[str, Any] = {}
        for key, raw_value in payload.items():
            if raw_value is None:
                continue
            if key in ConfigLoader._PATH_KEYS:
                normalized = normalize_optional_string(raw_value)
                if normalized is None:
                    raise ValueError(f"{source_label} requires non-empty `{key}`.")
                values[key] = Path(normalized)
            elif key in ConfigLoader._INT_KEYS:
                values[key] = ConfigLoader._positive_int(raw_value, key, source_label)
            elif key in ConfigLoader._FLOAT_KEYS:
                values[key] = parse_positive_number(raw_value, key)
            elif key == "concurrent_media":
                parsed_flag = parse_permissive_boolean(raw_value)
                if parsed_flag is None:
                    raise ValueError(f"{source_label} field `{key}` must be a boolean.")
                values[key] = parsed_flag
            elif key == "storage_base_url" or key == "api_key":
                values[key] = normalize_optional_string(raw_value)
            else:
                normalized = normalize_optional_string(raw_value)
                if normalized is None:
                    raise ValueError(f"{source_label} field `{key}` must not be blank.")
                values[key] = normalized

        config = CastoryConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _positive_int(raw_value: Any, key: str, source_label: str) -> int:
        """Read and validate a positive integer field."""

        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        try:
            parsed = int(str(raw_value).strip())
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.") from exc
        if parsed <= 0:
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        return parsed
