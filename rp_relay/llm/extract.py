"""
Provider response extraction.

Turns an upstream (status, body) pair into a ``ProviderResult`` or raises the
matching error class. Non-2xx bodies are classified by status first and by the
wording of the provider's error message second.
"""

from __future__ import annotations

import logging
from typing import Any

from rp_relay.errors import (
    ContextTooLongError,
    InsufficientCreditsError,
    RateLimitedError,
    UpstreamError,
)
from rp_relay.llm.client import adapter_class
from rp_relay.llm.profiles import Provider, get_profile, resolve_provider
from rp_relay.models import ProviderResult

logger = logging.getLogger(__name__)

_CONTEXT_HINTS = ("context", "token")


def error_message(status_code: int, body: Any) -> str:
    """Best available human-readable message from an error body."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            if msg := error.get("message"):
                return str(msg)
            metadata = error.get("metadata")
            if isinstance(metadata, dict) and (raw := metadata.get("raw")):
                return str(raw)
        elif isinstance(error, str) and error:
            return error
        if msg := body.get("message"):
            return str(msg)
    elif isinstance(body, str) and body.strip():
        return body.strip()[:300]
    return f"HTTP {status_code} — request failed"


def classify_upstream_error(
    provider: str | Provider, status_code: int, body: Any
) -> UpstreamError:
    label = get_profile(provider).label
    message = error_message(status_code, body)
    lowered = message.lower()

    if status_code == 429:
        return RateLimitedError(
            f"{label} rate limit reached. Wait a moment and try again. ({message})",
            upstream_status=status_code,
        )
    if status_code == 402:
        return InsufficientCreditsError(
            f"{label} account has insufficient credits. ({message})",
            upstream_status=status_code,
        )
    if status_code == 413 or any(hint in lowered for hint in _CONTEXT_HINTS):
        return ContextTooLongError(
            f"Conversation is too long for this model. Reduce the context and "
            f"try again. ({message})",
            upstream_status=status_code,
        )
    return UpstreamError(message, upstream_status=status_code)


def extract_result(
    provider: str | Provider, status_code: int, body: Any
) -> ProviderResult:
    provider = resolve_provider(provider)
    if not 200 <= status_code < 300:
        err = classify_upstream_error(provider, status_code, body)
        logger.warning(
            f"{provider.value} returned HTTP {status_code}: "
            f"{type(err).__name__}: {err.message}"
        )
        raise err

    data = body if isinstance(body, dict) else {}
    return adapter_class(provider).parse_response(data)
