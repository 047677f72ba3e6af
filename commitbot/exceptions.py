"""Custom exceptions for commitbot."""

from __future__ import annotations

from typing import Optional


class CommitbotError(Exception):
    """Base exception for commitbot."""


class ConfigError(CommitbotError):
    """Raised when configuration is invalid or incomplete."""


class GitError(CommitbotError):
    """Raised when a Git command fails."""


class ValidationError(CommitbotError):
    """Raised when user input cannot be accepted."""


class LLMError(CommitbotError):
    """Raised when talking to the model backend fails."""


class BackendError(LLMError):
    """A single backend call failed."""


class TransportError(BackendError):
    """Network failure or non-success HTTP status from the backend.

    ``status_code`` is ``None`` for failures that never produced a response
    (connection refused, timeout).
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        status_code: Optional[int] = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body


class DecodeError(BackendError):
    """Response body did not have the expected JSON shape."""


class StreamDecodeError(DecodeError):
    """A streamed frame could not be decoded."""
