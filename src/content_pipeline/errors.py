"""Error taxonomy for the content pipeline.

Every failure a caller can observe maps to one ``ErrorKind`` so the API layer
can pick a message (e.g. offer "try again" on a timeout) without parsing text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    MALFORMED_OUTPUT = "malformed_output"
    INVALID_CREDENTIALS = "invalid_credentials"
    MODEL_UNAVAILABLE = "model_unavailable"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class PipelineError(Exception):
    """Base class for every error raised by this package."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class InputValidationError(PipelineError):
    """A required PipelineInput field is missing or invalid."""

    kind = ErrorKind.VALIDATION


# ---------------------------------------------------------------------------
# Text model client errors
# ---------------------------------------------------------------------------


class TextModelError(PipelineError):
    """A model call failed."""


class ModelTimeoutError(TextModelError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout: float):
        super().__init__(f"Model call timed out after {timeout:g}s")
        self.timeout = timeout


class MalformedOutputError(TextModelError):
    """The reply could not be parsed into the expected structure.

    ``excerpt`` holds the start of the raw reply for diagnostics; it is kept
    out of the message so it never reaches end users.
    """

    kind = ErrorKind.MALFORMED_OUTPUT

    def __init__(self, message: str, excerpt: str = ""):
        super().__init__(message)
        self.excerpt = excerpt


class InvalidCredentialsError(TextModelError):
    kind = ErrorKind.INVALID_CREDENTIALS


class ModelUnavailableError(TextModelError):
    kind = ErrorKind.MODEL_UNAVAILABLE


class RateLimitedError(TextModelError):
    kind = ErrorKind.RATE_LIMITED


class ProviderError(TextModelError):
    kind = ErrorKind.PROVIDER_ERROR


class UnknownModelError(TextModelError):
    kind = ErrorKind.UNKNOWN


class PipelineCancelled(TextModelError):
    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Pipeline cancelled"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Orchestrator errors
# ---------------------------------------------------------------------------


class StageFailure(PipelineError):
    """A stage could not produce its result."""

    def __init__(self, stage: str, label: str, cause: BaseException):
        super().__init__(f"{label} failed: {cause}")
        self.stage = stage
        self.cause = cause
        self.kind = getattr(cause, "kind", ErrorKind.UNKNOWN)

    @property
    def is_timeout(self) -> bool:
        return self.kind is ErrorKind.TIMEOUT
