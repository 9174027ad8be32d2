"""Unit tests for OpenAI-backed search, script, speech, and image collaborators."""

from __future__ import annotations

import base64
import json

import pytest

from castory.errors import ConfigurationError, UpstreamError
from castory.imaging.synthesizer import OpenAIImageSynthesizer
from castory.llm import openai_client as openai_http
from castory.news.script_writer import OpenAIScriptWriter
from castory.news.search import OpenAINewsSearch
from castory.telemetry.usage import UsageTracker
from castory.tts.synthesizer import OpenAISpeechSynthesizer
from tests.fakes import make_articles


class _MockRequestsResponse:
    """Minimal requests response mock for HTTP transport patching."""

    def __init__(self, *, payload: bytes, status_code: int = 200) -> None:
        """Initialize response with raw payload bytes and HTTP status."""

        self.content = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        """Raise HTTPError when the response status represents a failure."""

        if self.status_code >= 400:
            raise openai_http.requests.HTTPError(
                f"HTTP {self.status_code} error",
                response=self,
            )


def _json_response(payload: object, status_code: int = 200) -> _MockRequestsResponse:
    return _MockRequestsResponse(payload=json.dumps(payload).encode("utf-8"), status_code=status_code)


def test_news_search_parses_articles_from_output_text(monkeypatch: pytest.MonkeyPatch) -> None:
    """Search should send a web-search request and validate the returned array."""

    captured: dict[str, object] = {}
    articles = [article.as_payload() for article in make_articles(2)]

    def _mock_post(url: str, **kwargs: object) -> _MockRequestsResponse:
        """Capture the request and return a responses-API payload."""

        captured["url"] = url
        captured["json"] = kwargs["json"]
        return _json_response(
            {
                "output": [
                    {"type": "web_search_call"},
                    {
                        "type": "message",
                        "content": [
                            {"type": "output_text", "text": f"Here you go:\n{json.dumps(articles)}"}
                        ],
                    },
                ]
            }
        )

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)
    usage = UsageTracker()

    result = OpenAINewsSearch(api_key="key", usage=usage).search_news("technology", 2)

    assert [article.title for article in result] == ["Story 1", "Story 2"]
    assert str(captured["url"]).endswith("/responses")
    assert captured["json"]["tools"] == [{"type": "web_search"}]  # type: ignore[index]
    assert usage.text_calls == 1


def test_script_writer_returns_first_choice_text(monkeypatch: pytest.MonkeyPatch) -> None:
    """Script generation should return trimmed assistant content."""

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        """Return a chat-completions payload."""

        return _json_response({"choices": [{"message": {"content": "  Welcome back.  "}}]})

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)

    script = OpenAIScriptWriter(api_key="key").generate_script(
        "technology", make_articles(2), "casual", "short"
    )

    assert script == "Welcome back."


def test_missing_api_key_fails_before_any_request(monkeypatch: pytest.MonkeyPatch) -> None:
    """No credential means no network attempt."""

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        raise AssertionError("request must not be sent")

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)

    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY is not set."):
        OpenAISpeechSynthesizer(api_key=" ").synthesize("Hello.", "alloy")


@pytest.mark.parametrize(
    ("status_code", "body", "failure_kind"),
    [
        (401, {"error": {"message": "Incorrect API key provided: sk-abcdefghijklmnop"}}, "invalid_api_key"),
        (429, {"error": {"code": "insufficient_quota", "message": "Quota exceeded."}}, "insufficient_quota"),
        (404, {"error": {"code": "model_not_found", "message": "No such model."}}, "invalid_model"),
        (500, {"error": {"message": "Internal error."}}, "http_error"),
    ],
)
def test_http_failures_are_classified(
    monkeypatch: pytest.MonkeyPatch,
    status_code: int,
    body: dict[str, object],
    failure_kind: str,
) -> None:
    """HTTP errors should map to deterministic failure kinds with redacted detail."""

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        return _json_response(body, status_code=status_code)

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)

    with pytest.raises(UpstreamError) as exc_info:
        OpenAISpeechSynthesizer(api_key="key").synthesize("Hello.", "alloy")

    error = exc_info.value
    assert error.stage == "speech"
    assert error.failure_kind == failure_kind
    assert error.status_code == status_code
    assert "sk-abcdefghijklmnop" not in error.detail


def test_transport_timeout_is_classified(monkeypatch: pytest.MonkeyPatch) -> None:
    """A requests timeout should surface as a timeout failure."""

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        raise openai_http.requests.Timeout("read timed out")

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)

    with pytest.raises(UpstreamError) as exc_info:
        OpenAIScriptWriter(api_key="key").generate_script("ai", [], "casual", "short")

    assert exc_info.value.failure_kind == "timeout"
    assert exc_info.value.detail == "OpenAI request timed out."


def test_speech_rejects_unknown_voice_without_request(monkeypatch: pytest.MonkeyPatch) -> None:
    """Voice labels outside the catalogue fail before any paid call."""

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        raise AssertionError("request must not be sent")

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)

    with pytest.raises(UpstreamError) as exc_info:
        OpenAISpeechSynthesizer(api_key="key").synthesize("Hello.", "robot")

    assert exc_info.value.failure_kind == "invalid_voice"


def test_speech_counts_characters_and_rejects_empty_audio(monkeypatch: pytest.MonkeyPatch) -> None:
    """Successful calls are counted; empty bodies are upstream failures."""

    payloads = [b"ID3-audio", b""]

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        return _MockRequestsResponse(payload=payloads.pop(0))

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)
    usage = UsageTracker()
    speech = OpenAISpeechSynthesizer(api_key="key", usage=usage)

    assert speech.synthesize("Hello.", "nova") == b"ID3-audio"
    with pytest.raises(UpstreamError, match="speech response is empty"):
        speech.synthesize("Again.", "nova")
    assert usage.summary()["speech_characters"] == len("Hello.")


def test_image_decodes_base64_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    """Inline base64 image data should be decoded without a download."""

    encoded = base64.b64encode(b"\x89PNG-data").decode("ascii")

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        return _json_response({"data": [{"b64_json": encoded}]})

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)

    assert OpenAIImageSynthesizer(api_key="key").synthesize("cover") == b"\x89PNG-data"


def test_image_downloads_hosted_url(monkeypatch: pytest.MonkeyPatch) -> None:
    """A hosted image URL should be fetched with a GET request."""

    requested: list[str] = []

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        return _json_response({"data": [{"url": "https://images.example/cover.png"}]})

    def _mock_get(url: str, **_kwargs: object) -> _MockRequestsResponse:
        requested.append(url)
        return _MockRequestsResponse(payload=b"png-bytes")

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)
    monkeypatch.setattr("castory.llm.openai_client.requests.get", _mock_get)

    assert OpenAIImageSynthesizer(api_key="key").synthesize("cover") == b"png-bytes"
    assert requested == ["https://images.example/cover.png"]


def test_image_without_data_is_malformed(monkeypatch: pytest.MonkeyPatch) -> None:
    """An empty image list should be reported as a malformed response."""

    def _mock_post(_url: str, **_kwargs: object) -> _MockRequestsResponse:
        return _json_response({"data": []})

    monkeypatch.setattr("castory.llm.openai_client.requests.post", _mock_post)

    with pytest.raises(UpstreamError, match="No image returned by OpenAI."):
        OpenAIImageSynthesizer(api_key="key").synthesize("cover")
