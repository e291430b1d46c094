"""Exception taxonomy for the observability pipeline.

InputError subclasses are user-facing (HTTP 400) and never retried.
UpstreamError subclasses describe LLM gateway failures; they propagate
out of the pipeline and the API layer decides what the client sees.
Parse and shape problems with model output never appear here: the
result validator recovers from them locally.
"""

from typing import Optional


class ObservabilityError(Exception):
    """Base class for pipeline errors."""


class InputError(ObservabilityError):
    """The caller supplied input the pipeline cannot analyze."""


class EmptyTranscriptError(InputError):
    """Normalization produced zero turns."""

    def __init__(self, message: str = "Transcript is required"):
        super().__init__(message)


class InvalidTranscriptError(InputError):
    """A transcript entry could not be mapped to a turn."""


class UpstreamError(ObservabilityError):
    """The LLM gateway returned a non-2xx response or was unreachable.

    Attributes:
        status: HTTP status code, or None when no response was received
        body: Raw response body (server-side logging only)
    """

    def __init__(self, status: Optional[int], body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"LLM gateway request failed: {status}")


class UpstreamTimeoutError(UpstreamError):
    """The LLM gateway did not answer within the bounded wait."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(status=None, body="")
        self.args = (f"LLM gateway timed out after {timeout_seconds}s",)
