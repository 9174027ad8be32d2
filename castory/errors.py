"""Domain exceptions for generation, storage, and wizard diagnostics.

Key types:
- `CastoryError`: stage-scoped base error rendered by the CLI.
- `ConfigurationError`, `UpstreamError`, `StorageError`: failures that abandon
  a step without leaving partial artifacts behind.
- `TransitionBlockedError`: a forced transition whose forward guard fails.
- `PersistenceError`: local draft store failures, never surfaced to authors.
"""

from __future__ import annotations


class CastoryError(RuntimeError):
    """Raised when a specific stage of podcast authoring fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class ConfigurationError(CastoryError):
    """Raised before any network attempt when a required setting is missing."""


class UpstreamError(CastoryError):
    """Raised when an external generative service fails or returns malformed output."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        super().__init__(stage=stage, detail=detail, hint=hint)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


class StorageError(CastoryError):
    """Raised when upload, URL resolution, or record creation fails."""


class TransitionBlockedError(CastoryError):
    """Raised when a wizard transition is forced while its guard does not hold."""

    def __init__(self, *, step: str, reasons: tuple[str, ...]) -> None:
        super().__init__(
            stage="wizard",
            detail=f"Cannot leave step `{step}`: {'; '.join(reasons)}.",
        )
        self.step = step
        self.reasons = reasons


class PersistenceError(RuntimeError):
    """Raised by client-local stores when a value cannot be read or written."""
