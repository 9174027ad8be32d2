"""OpenAI HTTP client utilities for search, script, speech, and image stages.

Responsibilities:
- Send minimal REST requests to OpenAI's chat, responses, speech, and image endpoints.
- Normalize response extraction so callers only ever see validated payloads.
- Raise `UpstreamError` with classified failure kinds for step-level reporting.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
import socket
from typing import Any

import requests

from ..errors import ConfigurationError, UpstreamError


class _OpenAIBaseClient:
    """Shared OpenAI HTTP settings and helpers used by stage-specific clients."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180
    _STAGE = "openai"

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 120.0,
    ) -> None:
        """Initialize OpenAI HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _require_api_key(self) -> None:
        """Require API key presence before issuing OpenAI requests."""

        if not self.api_key:
            raise ConfigurationError(
                stage=self._STAGE,
                detail="OPENAI_API_KEY is not set.",
                hint="Set `OPENAI_API_KEY`, use `--api-key`, or `--prompt-api-key`.",
            )

    def _error(self, detail: str, failure_kind: str = "unknown", **metadata: Any) -> UpstreamError:
        """Build a stage-scoped upstream error."""

        return UpstreamError(
            stage=self._STAGE,
            detail=detail,
            failure_kind=failure_kind,
            status_code=metadata.get("status_code"),
            provider_code=metadata.get("provider_code"),
        )

    def _post_json_bytes(
        self,
        *,
        endpoint_path: str,
        payload: dict[str, Any],
        require_non_empty_response: bool = False,
        empty_response_message: str = "OpenAI response is empty.",
    ) -> bytes:
        """Execute an OpenAI JSON POST request and map failures consistently."""

        endpoint = f"{self.base_url}{endpoint_path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            response_bytes = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_upstream_error(exc) from exc
        except requests.RequestException as exc:
            raise self._transport_error(exc) from exc

        if require_non_empty_response and not response_bytes:
            raise self._error(empty_response_message)
        return response_bytes

    def _get_bytes(self, url: str) -> bytes:
        """Download a provider-hosted artifact such as a generated image."""

        try:
            response = requests.get(url, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._http_error_to_upstream_error(exc) from exc
        except requests.RequestException as exc:
            raise self._transport_error(exc) from exc
        content = bytes(response.content)
        if not content:
            raise self._error("OpenAI artifact download is empty.")
        return content

    def _post_json_object(self, *, endpoint_path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON payload and decode a JSON object response."""

        raw_payload = self._post_json_bytes(endpoint_path=endpoint_path, payload=payload)
        try:
            decoded = json.loads(raw_payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise self._error("OpenAI returned invalid JSON payload.", "malformed") from exc
        if not isinstance(decoded, dict):
            raise self._error("OpenAI response root is not a JSON object.", "malformed")
        return decoded

    def _transport_error(self, exc: requests.RequestException) -> UpstreamError:
        """Map network-layer failures to upstream errors."""

        failure_kind = self._classify_transport_failure(exc)
        if failure_kind == "timeout":
            return self._error("OpenAI request timed out.", failure_kind)
        return self._error(
            f"OpenAI request transport error: {self._short_message(str(exc))}",
            failure_kind,
        )

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content or b"").decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        redacted = re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider-facing message and optional provider error code."""

        if not body:
            return "", None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body)), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                code_value = error_payload.get("code")
                if isinstance(code_value, str) and code_value.strip():
                    provider_code = code_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        if message is None:
            message = body

        return cls._short_message(cls._redact_sensitive_tokens(message)), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify OpenAI HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.lower() if provider_code is not None else ""

        if status_code == 401 or "api key" in message_lower:
            return "invalid_api_key"
        if normalized_code == "insufficient_quota" or (
            status_code == 429 and "quota" in message_lower
        ):
            return "insufficient_quota"
        if normalized_code == "model_not_found" or (
            "model" in message_lower
            and any(phrase in message_lower for phrase in ("not found", "does not exist", "invalid"))
        ):
            return "invalid_model"
        if status_code in {408, 504} or "timeout" in message_lower or "timed out" in message_lower:
            return "timeout"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    def _http_error_to_upstream_error(self, exc: requests.HTTPError) -> UpstreamError:
        """Convert HTTP errors into normalized upstream errors with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = self._decode_error_body(exc)
        provider_message, provider_code = self._extract_provider_message(body)
        failure_kind = self._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "invalid_api_key": "OpenAI authentication failed",
            "insufficient_quota": "OpenAI quota is insufficient for this request",
            "invalid_model": "OpenAI rejected the selected model",
            "timeout": "OpenAI request timed out",
        }.get(failure_kind, "OpenAI request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."

        return self._error(
            detail,
            failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )


class OpenAIChatClient(_OpenAIBaseClient):
    """Minimal requests-based OpenAI chat-completions HTTP client."""

    _STAGE = "script"

    def chat_completion_text(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """Return the first assistant text response from a chat-completions request."""

        self._require_api_key()

        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        response = self._post_json_object(endpoint_path="/chat/completions", payload=payload)
        return self._extract_message_text(response)

    def _extract_message_text(self, payload: dict[str, Any]) -> str:
        """Extract first assistant message text from a chat-completions payload."""

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise self._error("OpenAI response missing non-empty `choices` list.", "malformed")

        first_choice = choices[0]
        if not isinstance(first_choice, dict):
            raise self._error("OpenAI response `choices[0]` is malformed.", "malformed")

        message = first_choice.get("message")
        if not isinstance(message, dict):
            raise self._error("OpenAI response missing `choices[0].message` object.", "malformed")

        text = _content_to_text(message.get("content")).strip()
        if not text:
            raise self._error("OpenAI response message content is empty.", "malformed")
        return text


class OpenAIResponsesClient(_OpenAIBaseClient):
    """Responses API client used for web-search backed lookups."""

    _STAGE = "search"

    def web_search_text(self, *, model: str, prompt: str) -> str:
        """Run one web-search enabled request and return its aggregated output text."""

        self._require_api_key()

        payload = {
            "model": model,
            "tools": [{"type": "web_search"}],
            "input": prompt,
        }
        response = self._post_json_object(endpoint_path="/responses", payload=payload)
        return self._extract_output_text(response)

    def _extract_output_text(self, payload: dict[str, Any]) -> str:
        """Join every `output_text` part from the response output items."""

        convenience = payload.get("output_text")
        if isinstance(convenience, str) and convenience.strip():
            return convenience.strip()

        output = payload.get("output")
        if not isinstance(output, list):
            raise self._error("OpenAI response missing `output` list.", "malformed")

        parts: list[str] = []
        for item in output:
            if not isinstance(item, dict) or item.get("type") != "message":
                continue
            for content in item.get("content") or []:
                if (
                    isinstance(content, dict)
                    and content.get("type") == "output_text"
                    and isinstance(content.get("text"), str)
                ):
                    parts.append(content["text"])
        text = "".join(parts).strip()
        if not text:
            raise self._error("OpenAI response contains no output text.", "malformed")
        return text


class OpenAISpeechClient(_OpenAIBaseClient):
    """Minimal requests-based OpenAI speech HTTP client for TTS synthesis."""

    _STAGE = "speech"

    def synthesize_speech(
        self,
        *,
        model: str,
        voice: str,
        text: str,
        response_format: str = "mp3",
    ) -> bytes:
        """Return synthesized audio bytes from OpenAI `/audio/speech`."""

        self._require_api_key()

        payload = {
            "model": model,
            "voice": voice,
            "input": text,
            "response_format": response_format,
        }
        return self._post_json_bytes(
            endpoint_path="/audio/speech",
            payload=payload,
            require_non_empty_response=True,
            empty_response_message="OpenAI speech response is empty.",
        )


class OpenAIImageClient(_OpenAIBaseClient):
    """Minimal requests-based OpenAI image generation client."""

    _STAGE = "image"

    def generate_image(
        self,
        *,
        model: str,
        prompt: str,
        size: str = "1024x1024",
        quality: str = "standard",
    ) -> bytes:
        """Generate one image and return its binary payload."""

        self._require_api_key()

        payload = {
            "model": model,
            "prompt": prompt,
            "size": size,
            "quality": quality,
            "n": 1,
        }
        response = self._post_json_object(endpoint_path="/images/generations", payload=payload)
        data = response.get("data")
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise self._error("No image returned by OpenAI.", "malformed")

        first = data[0]
        encoded = first.get("b64_json")
        if isinstance(encoded, str) and encoded:
            try:
                return base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise self._error("OpenAI image payload is not valid base64.", "malformed") from exc

        url = first.get("url")
        if not isinstance(url, str) or not url:
            raise self._error("No image URL returned by OpenAI.", "malformed")
        return self._get_bytes(url)


def _content_to_text(content: Any) -> str:
    """Convert OpenAI message content variants into a plain text string."""

    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if not isinstance(item, dict):
                continue
            if item.get("type") == "text" and isinstance(item.get("text"), str):
                parts.append(item["text"])
        return "".join(parts)
    return ""
