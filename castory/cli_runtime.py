"""CLI runtime resolution helpers.

This module isolates config loading, API-key prompting, and secure key
persistence from the command wiring layer.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Mapping, Protocol

import typer

from .config import CastoryConfig, ConfigLoader, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import ConfigurationError
from .parsing import normalize_optional_string


class CredentialStoreProtocol(Protocol):
    """Protocol for secure credential store operations used by CLI runtime resolution."""

    def get_api_key(self) -> str | None:
        """Return currently stored API key, if available."""

    def set_api_key(self, api_key: str) -> None:
        """Persist API key value in secure storage."""


def load_command_config(
    config_path: Path | None,
    env: Mapping[str, str] | None = None,
) -> CastoryConfig:
    """Load the YAML config when given, else `CASTORY_*` environment values.

    Raises:
        ConfigurationError: If the file is missing or contains invalid values.
    """

    env_map: Mapping[str, str] = os.environ if env is None else env
    try:
        if config_path is None:
            return ConfigLoader.from_env(env_map)
        config = ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise ConfigurationError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise ConfigurationError(
            stage="config",
            detail=f"Invalid configuration: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc

    env_api_key = normalize_optional_string(env_map.get("OPENAI_API_KEY"))
    config.runtime_sources = RuntimeConfigSources(
        env={"OPENAI_API_KEY": env_api_key} if env_api_key is not None else {}
    )
    return config


def resolve_api_key_sources(
    api_key: str | None,
    prompt_api_key: bool,
    store_api_key: bool,
    credential_store_factory: Callable[[], CredentialStoreProtocol] = create_credential_store,
) -> tuple[dict[str, str], dict[str, str]]:
    """Resolve CLI and secure runtime source mappings for the API key."""

    runtime_cli_values: dict[str, str] = {}
    normalized = normalize_optional_string(api_key)
    if normalized is not None:
        runtime_cli_values["api_key"] = normalized
    elif prompt_api_key:
        prompted = normalize_optional_string(
            typer.prompt(
                "OpenAI API key (hidden; leave blank to skip)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted is not None:
            runtime_cli_values["api_key"] = prompted

    credential_store = credential_store_factory()
    runtime_secure_values: dict[str, str] = {}
    stored_api_key = credential_store.get_api_key()
    if stored_api_key is not None:
        runtime_secure_values["api_key"] = stored_api_key

    if "api_key" in runtime_cli_values and store_api_key:
        try:
            credential_store.set_api_key(runtime_cli_values["api_key"])
        except (RuntimeError, ValueError) as exc:
            raise ConfigurationError(
                stage="credentials",
                detail=f"Failed to store API key securely: {exc}",
                hint=(
                    "Configure a keyring backend, or rerun with "
                    "`--no-store-api-key` for one-off usage."
                ),
            ) from exc
        typer.echo("Stored API key in secure credential storage.")

    return runtime_cli_values, runtime_secure_values


def apply_runtime_sources(
    config: CastoryConfig,
    runtime_cli_values: Mapping[str, str],
    runtime_secure_values: Mapping[str, str],
) -> CastoryConfig:
    """Attach CLI and secure sources while keeping the environment source."""

    config.runtime_sources = RuntimeConfigSources(
        cli=dict(runtime_cli_values),
        secure=dict(runtime_secure_values),
        env=config.runtime_sources.env,
    )
    return config
