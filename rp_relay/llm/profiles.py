# rp_relay/llm/profiles.py
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from rp_relay.errors import UnknownProviderError


class Provider(str, Enum):
    MANCER = "mancer"
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ProviderProfile(BaseModel):
    """Static description of one provider's endpoint, auth and body quirks."""

    model_config = ConfigDict(frozen=True)

    label: str
    url: str
    env_key: str
    auth_header: str
    bearer: bool = False
    extra_headers: dict[str, str] = Field(default_factory=dict)
    max_tokens: int = 1024
    temperature: float | None = None
    system_placement: Literal["inline", "separate"] = "inline"
    requires_alternation: bool = False
    supports_thinking_toggle: bool = False
    # Ceiling applied by the draft flow; None means no raise.
    extended_max_tokens: int | None = None


PROFILES: dict[Provider, ProviderProfile] = {
    Provider.MANCER: ProviderProfile(
        label="Mancer",
        url="https://neuro.mancer.tech/oai/v1/chat/completions",
        env_key="MANCER_API_KEY",
        auth_header="X-API-KEY",
        max_tokens=2048,
        temperature=0.7,
        supports_thinking_toggle=True,
    ),
    Provider.OPENROUTER: ProviderProfile(
        label="OpenRouter",
        url="https://openrouter.ai/api/v1/chat/completions",
        env_key="OPENROUTER_API_KEY",
        auth_header="Authorization",
        bearer=True,
        extra_headers={
            "HTTP-Referer": "https://rp-companion.up.railway.app",
            "X-Title": "RP Companion",
        },
        extended_max_tokens=2048,
    ),
    Provider.OPENAI: ProviderProfile(
        label="OpenAI",
        url="https://api.openai.com/v1/chat/completions",
        env_key="OPENAI_API_KEY",
        auth_header="Authorization",
        bearer=True,
        extended_max_tokens=2048,
    ),
    Provider.ANTHROPIC: ProviderProfile(
        label="Anthropic",
        url="https://api.anthropic.com/v1/messages",
        env_key="ANTHROPIC_API_KEY",
        auth_header="x-api-key",
        extra_headers={"anthropic-version": "2023-06-01"},
        system_placement="separate",
        requires_alternation=True,
        extended_max_tokens=2048,
    ),
}


def resolve_provider(provider: str | Provider) -> Provider:
    """Map an exact provider tag onto the closed enum."""
    if isinstance(provider, Provider):
        return provider
    try:
        return Provider(provider)
    except ValueError:
        raise UnknownProviderError(provider) from None


def get_profile(provider: str | Provider) -> ProviderProfile:
    return PROFILES[resolve_provider(provider)]
