"""
Exception taxonomy for the chat pipeline.

Errors are recovered as close to their origin as possible:
- QueryValidationError is the caller's problem and surfaces as HTTP 400.
- Inference errors are recovered per chunk (batch path) or by the
  timeout → batch → local fallback chain (single-call path).
- BatchPartitionError is fatal to a batch run and ends in the local fallback.
"""
from typing import Optional


class QueryValidationError(ValueError):
    """Raised when the incoming query is empty or not a string."""


class InferenceError(Exception):
    """Base class for inference service failures."""

    error_type = "inference_error"

    def __init__(self, message: str, agent: Optional[str] = None):
        super().__init__(message)
        self.agent = agent


class InferenceNotConfiguredError(InferenceError):
    """Raised when no API key is configured for the inference service."""

    error_type = "missing_api_key"


class InferenceTimeoutError(InferenceError):
    """Raised when a call exceeds its timeout."""

    error_type = "timeout"


class InferenceTransportError(InferenceError):
    """Raised on connection problems, non-2xx responses or malformed bodies."""

    error_type = "transport_error"

    def __init__(
        self,
        message: str,
        agent: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, agent=agent)
        self.status_code = status_code


class InferenceRateLimitError(InferenceTransportError):
    """Raised when the inference service answers 429."""

    error_type = "rate_limited"


class BatchPartitionError(Exception):
    """Raised when a candidate set cannot be split into chunks."""
