import json

import httpx
import pytest

from rp_relay.config import RelaySettings

ALL_KEYS = {
    "MANCER_API_KEY": "server-mancer",
    "OPENROUTER_API_KEY": "server-openrouter",
    "OPENAI_API_KEY": "server-openai",
    "ANTHROPIC_API_KEY": "server-anthropic",
}


class RecordingUpstream:
    """httpx handler that records every outbound call and replies with a canned body."""

    def __init__(self, status_code: int = 200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {
            "choices": [{"message": {"role": "assistant", "content": "Hello there"}}]
        }
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.calls[-1].content)

    @property
    def last_headers(self) -> httpx.Headers:
        return self.calls[-1].headers


@pytest.fixture
def settings() -> RelaySettings:
    return RelaySettings(provider_keys=dict(ALL_KEYS))


@pytest.fixture
def keyless_settings() -> RelaySettings:
    return RelaySettings()
