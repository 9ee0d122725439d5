"""Error taxonomy for the relay.

Every error carries the HTTP status the endpoint layer answers with, so the
server can turn any failure into a ``{"error": ...}`` envelope without a lookup
table.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base error for every failure the relay reports to its caller."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(RelayError):
    """A required request field is missing or empty."""

    status_code = 400


class PayloadTooLargeError(RelayError):
    """The serialized conversation exceeds the configured ceiling."""

    status_code = 413

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"Request too large ({size_bytes / 1_048_576:.1f} MB, limit "
            f"{limit_bytes / 1_048_576:.1f} MB). Please reduce the conversation "
            "context and try again."
        )


class UnknownProviderError(RelayError):
    """The provider tag matches none of the supported providers."""

    status_code = 400

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Unknown provider: {provider}")


class ConfigurationError(RelayError):
    """No usable API key exists for the selected provider."""

    status_code = 500


class UpstreamError(RelayError):
    """The provider answered with a non-2xx status or could not be reached."""

    status_code = 500

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        status_code: int | None = None,
    ) -> None:
        self.upstream_status = upstream_status
        super().__init__(message, status_code)


class RateLimitedError(UpstreamError):
    status_code = 429


class InsufficientCreditsError(UpstreamError):
    status_code = 402


class ContextTooLongError(UpstreamError):
    status_code = 413


class ExtractionError(RelayError):
    """A 2xx provider response did not have the expected shape."""

    status_code = 500
