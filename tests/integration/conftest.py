"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from castory.llm.openai_client import (
    OpenAIChatClient,
    OpenAIImageClient,
    OpenAIResponsesClient,
    OpenAISpeechClient,
)
from tests.fakes import integration_script, silent_wav_bytes

INTEGRATION_ARTICLES = [
    {
        "title": f"Technology story {index}",
        "summary": f"Summary of technology story {index}.",
        "source": f"Outlet {index}",
        "url": f"https://news.example/tech/{index}",
    }
    for index in range(1, 6)
]


class InMemoryCredentialStore:
    """Credential store kept in memory so tests never touch the OS keyring."""

    def __init__(self) -> None:
        self.api_key: str | None = None

    def get_api_key(self) -> str | None:
        return self.api_key

    def set_api_key(self, api_key: str) -> None:
        if not api_key.strip():
            raise ValueError("API key must be a non-empty string.")
        self.api_key = api_key.strip()

    def clear_api_key(self) -> bool:
        existed = self.api_key is not None
        self.api_key = None
        return existed


@pytest.fixture(autouse=True)
def _mock_openai_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mock OpenAI calls in integration tests to avoid network/key requirements."""

    def _mock_web_search(self, **kwargs: object) -> str:
        """Return a deterministic article list wrapped in prose."""

        _ = self
        _ = kwargs
        return f"Today's stories:\n{json.dumps(INTEGRATION_ARTICLES)}"

    def _mock_chat_completion(self, **kwargs: object) -> str:
        """Return the deterministic integration script."""

        _ = self
        _ = kwargs
        return integration_script()

    def _mock_synthesize_speech(self, **kwargs: object) -> bytes:
        """Return a short silent WAV payload per chunk."""

        _ = self
        _ = kwargs
        return silent_wav_bytes()

    def _mock_generate_image(self, **kwargs: object) -> bytes:
        """Return placeholder PNG bytes."""

        _ = self
        _ = kwargs
        return b"\x89PNG-integration"

    monkeypatch.setattr(OpenAIResponsesClient, "web_search_text", _mock_web_search)
    monkeypatch.setattr(OpenAIChatClient, "chat_completion_text", _mock_chat_completion)
    monkeypatch.setattr(OpenAISpeechClient, "synthesize_speech", _mock_synthesize_speech)
    monkeypatch.setattr(OpenAIImageClient, "generate_image", _mock_generate_image)


@pytest.fixture(autouse=True)
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Route CLI credential access to one in-memory store per test."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("castory.cli.create_credential_store", lambda: store)
    return store


@pytest.fixture
def castory_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point every Castory path at `tmp_path` and use WAV speech output."""

    for key in list(os.environ):
        if key.startswith("CASTORY_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("CASTORY_DRAFT_DIR", str(tmp_path / "drafts"))
    monkeypatch.setenv("CASTORY_STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("CASTORY_RECORDS_PATH", str(tmp_path / "podcasts.json"))
    monkeypatch.setenv("CASTORY_TTS_RESPONSE_FORMAT", "wav")
    monkeypatch.setenv("OPENAI_API_KEY", "integration-key")
    return tmp_path
