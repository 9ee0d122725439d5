# rp_relay/llm/providers/mancer.py
from __future__ import annotations

from typing import Any

from ..adjustments import append_nothink
from .openai_compat import OpenAICompatibleAdapter

JSON = dict[str, Any]
MsgList = list[dict[str, Any]]


class MancerAdapter(OpenAICompatibleAdapter):
    """
    OpenAI-shaped endpoint serving thinking-capable models.

    Visible reasoning is switched off twice: the ``enable_thinking`` flag and
    the ``/nothink`` marker on the last user turn. Some hosted models honour
    only one of the two.
    """

    def build_request(self, messages: MsgList) -> tuple[str, dict[str, str], JSON]:
        url, headers, payload = super().build_request(append_nothink(messages))
        payload["enable_thinking"] = False
        return (url, headers, payload)
