# rp_relay/llm/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from rp_relay.llm.profiles import ProviderProfile
from rp_relay.models import ProviderResult

JSON = dict[str, Any]
MsgList = list[dict[str, Any]]


class ProviderAdapter(ABC):
    """
    Strategy interface for each provider.
    Concrete adapters produce a request and normalize the response.
    """

    def __init__(self, profile: ProviderProfile, model: str, api_key: str):
        self.profile = profile
        self.model = model
        self.api_key = api_key     # each adapter decides which header to use

    # ---------- helpers ----------
    def _max_tokens(self) -> int: return self.profile.max_tokens

    def _headers(self) -> dict[str, str]:
        token = f"Bearer {self.api_key}" if self.profile.bearer else self.api_key
        return {
            "Content-Type": "application/json",
            self.profile.auth_header: token,
            **self.profile.extra_headers,
        }

    # ---------- interface ----------
    @abstractmethod
    def build_request(self, messages: MsgList) -> tuple[str, dict[str, str], JSON]:
        """
        → (url, headers, json_payload)
        """
        ...

    @classmethod
    @abstractmethod
    def parse_response(cls, data: JSON) -> ProviderResult:
        """
        Normalize a 2xx provider body to the uniform result:
          ProviderResult(text=str, reasoning_content=str|None)
        Raises ExtractionError when the body has an unexpected shape.
        """
        ...
