"""RP Companion relay: forwards roleplay chat requests to LLM providers."""

__version__ = "1.3.0"
