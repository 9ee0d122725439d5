# rp_relay/llm/providers/anthropic.py
from __future__ import annotations

from typing import Any

from rp_relay.errors import ExtractionError
from rp_relay.models import ProviderResult

from ..base import ProviderAdapter

JSON = dict[str, Any]
MsgList = list[dict[str, Any]]

FILLER_USER_TURN = "(continue)"


def _system_prompt(msgs: MsgList) -> str:
    return "\n\n".join(
        m["content"] for m in msgs if m["role"] == "system" and m["content"]
    )


def _to_anthropic_msgs(msgs: MsgList) -> list[dict[str, Any]]:
    """Drop system turns, merge same-role runs and end on a user turn."""
    out: list[dict[str, Any]] = []
    for m in msgs:
        role = m["role"]
        if role == "system":
            continue
        if role != "assistant":
            role = "user"
        if out and out[-1]["role"] == role:
            out[-1]["content"] = f"{out[-1]['content']}\n\n{m['content']}"
        else:
            out.append({"role": role, "content": m["content"]})

    if not out or out[-1]["role"] == "assistant":
        out.append({"role": "user", "content": FILLER_USER_TURN})
    return out


class AnthropicAdapter(ProviderAdapter):
    def build_request(self, messages: MsgList) -> tuple[str, dict[str, str], JSON]:
        payload: JSON = {
            "model": self.model,
            "max_tokens": self._max_tokens(),
            "system": _system_prompt(messages),
            "messages": _to_anthropic_msgs(messages),
        }
        return (self.profile.url, self._headers(), payload)

    @classmethod
    def parse_response(cls, data: JSON) -> ProviderResult:
        content = data.get("content") if isinstance(data, dict) else None
        first = content[0] if isinstance(content, list) and content else None
        text = first.get("text") if isinstance(first, dict) else None
        if not text or not isinstance(text, str):
            raise ExtractionError("Could not extract text from Anthropic response")
        return ProviderResult(text=text, reasoning_content=None)
