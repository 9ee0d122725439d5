from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from rp_relay.errors import ConfigurationError
from rp_relay.models import Message, MsgList, ProviderRequest

from .base import ProviderAdapter
from .profiles import Provider, ProviderProfile, get_profile, resolve_provider
from .providers import (
    AnthropicAdapter,
    MancerAdapter,
    OpenAICompatibleAdapter,
)

# TYPE_CHECKING imports to avoid circular imports
if TYPE_CHECKING:
    from rp_relay.config import RelaySettings

logger = logging.getLogger(__name__)


def adapter_class(provider: Provider) -> type[ProviderAdapter]:
    if provider is Provider.MANCER:
        return MancerAdapter
    if provider in (Provider.OPENAI, Provider.OPENROUTER):
        return OpenAICompatibleAdapter
    if provider is Provider.ANTHROPIC:
        return AnthropicAdapter
    raise ValueError(f"No adapter registered for provider: {provider}")


def resolve_api_key(
    profile: ProviderProfile, settings: RelaySettings, user_key: str | None = None
) -> str:
    """Caller key when non-empty, else the server key for this provider."""
    if user_key and user_key.strip():
        return user_key.strip()
    if server_key := settings.api_key_for(profile.env_key):
        return server_key
    raise ConfigurationError(
        f"{profile.label} API key not configured. Add {profile.env_key} to the "
        "server environment or provide your own key."
    )


def _as_dicts(messages: Sequence[Message | dict[str, Any]]) -> MsgList:
    return [
        m.model_dump()
        if isinstance(m, Message)
        else {"role": m["role"], "content": m["content"]}
        for m in messages
    ]


def build_provider_request(
    provider: str | Provider,
    model: str,
    messages: Sequence[Message | dict[str, Any]],
    settings: RelaySettings,
    user_key: str | None = None,
) -> ProviderRequest:
    """
    Build the outbound call for one provider.

    Raises UnknownProviderError for an unrecognized tag and ConfigurationError
    when neither ``user_key`` nor a server key is available.
    """
    provider = resolve_provider(provider)
    profile = get_profile(provider)
    api_key = resolve_api_key(profile, settings, user_key)

    adapter = adapter_class(provider)(profile, model, api_key)
    url, headers, body = adapter.build_request(_as_dicts(messages))
    logger.debug(
        f"Built {provider.value} request for model={model} "
        f"({len(body.get('messages', []))} messages)"
    )
    return ProviderRequest(provider=provider.value, url=url, headers=headers, body=body)
