from .anthropic import AnthropicAdapter
from .mancer import MancerAdapter
from .openai_compat import OpenAICompatibleAdapter

__all__ = [
    "AnthropicAdapter",
    "MancerAdapter",
    "OpenAICompatibleAdapter",
]
