# rp_relay/llm/providers/openai_compat.py
from __future__ import annotations

from typing import Any

from rp_relay.errors import ExtractionError
from rp_relay.models import ProviderResult

from ..base import ProviderAdapter

JSON = dict[str, Any]
MsgList = list[dict[str, Any]]


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


class OpenAICompatibleAdapter(ProviderAdapter):
    """
    Works unchanged for:
      • api.openai.com
      • openrouter.ai/api/v1
    """

    def build_request(self, messages: MsgList) -> tuple[str, dict[str, str], JSON]:
        payload: JSON = {
            "model": self.model,
            "messages": [dict(m) for m in messages],
            "max_tokens": self._max_tokens(),
        }
        if self.profile.temperature is not None:
            payload["temperature"] = self.profile.temperature

        return (self.profile.url, self._headers(), payload)

    @classmethod
    def parse_response(cls, data: JSON) -> ProviderResult:
        choices = data.get("choices") if isinstance(data, dict) else None
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        if not message or not isinstance(message, dict):
            raise ExtractionError("No message found in API response")

        text = _text(message.get("content")) or _text(message.get("text"))
        reasoning = _text(message.get("reasoning_content"))

        # Reasoning-only replies still count as an answer.
        if not text and reasoning:
            text = reasoning
        if not text:
            raise ExtractionError("Could not extract text from API response")

        return ProviderResult(text=text, reasoning_content=reasoning)
