"""
Post-build request adjustments.

Each adjustment is a pure ``ProviderRequest -> ProviderRequest`` step. Steps
copy the body before changing it and are idempotent, so applying one twice
(or after the mancer adapter already did the same thing) yields the same
request as applying it once.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from functools import reduce

from rp_relay.llm.profiles import Provider, get_profile, resolve_provider
from rp_relay.models import MsgList, ProviderRequest

logger = logging.getLogger(__name__)

NOTHINK_MARKER = "\n/nothink"

Adjustment = Callable[[ProviderRequest], ProviderRequest]


def append_nothink(messages: MsgList) -> MsgList:
    """Return a copy of ``messages`` whose last user turn ends with the marker."""
    out = [dict(m) for m in messages]
    for m in reversed(out):
        if m.get("role") != "user":
            continue
        content = m.get("content") or ""
        if not content.endswith(NOTHINK_MARKER):
            m["content"] = content + NOTHINK_MARKER
        break
    return out


def raise_token_ceiling(request: ProviderRequest) -> ProviderRequest:
    """Lift ``max_tokens`` to the provider's extended ceiling, if it has one."""
    ceiling = get_profile(request.provider).extended_max_tokens
    current = request.body.get("max_tokens", 0)
    if ceiling is None or current >= ceiling:
        return request
    body = copy.deepcopy(request.body)
    body["max_tokens"] = ceiling
    return request.model_copy(update={"body": body})


def suppress_thinking(request: ProviderRequest) -> ProviderRequest:
    """Set ``enable_thinking=false`` and mark the last user turn with /nothink."""
    body = copy.deepcopy(request.body)
    body["enable_thinking"] = False
    body["messages"] = append_nothink(body.get("messages", []))
    return request.model_copy(update={"body": body})


def needs_thinking_suppression(provider: str | Provider, model: str) -> bool:
    if get_profile(provider).supports_thinking_toggle:
        return True
    return "glm" in (model or "").lower()


def draft_adjustments(provider: str | Provider, model: str) -> list[Adjustment]:
    """Ordered adjustments the draft flow applies after the base build."""
    steps: list[Adjustment] = [raise_token_ceiling]
    if needs_thinking_suppression(provider, model):
        logger.debug(
            f"Thinking suppression enabled for {resolve_provider(provider).value} "
            f"model={model}"
        )
        steps.append(suppress_thinking)
    return steps


def apply_adjustments(
    request: ProviderRequest, steps: Iterable[Adjustment]
) -> ProviderRequest:
    return reduce(lambda req, step: step(req), steps, request)
