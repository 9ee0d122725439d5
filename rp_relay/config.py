"""Configuration management for the relay."""

from __future__ import annotations

import os
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from rp_relay.http_client import HttpConfig, create_http_config_from_dict
from rp_relay.llm.profiles import PROFILES

DEFAULT_MAX_PAYLOAD_BYTES = 4 * 1024 * 1024


class ServerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 3000


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    format: str = "%(asctime)s - %(levelname)s - %(message)s"


class RelaySettings(BaseModel):
    """Process-wide settings, assembled once at startup and never mutated."""

    model_config = ConfigDict(frozen=True)

    provider_keys: dict[str, str] = Field(default_factory=dict)
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
    http: HttpConfig = Field(default_factory=HttpConfig)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def api_key_for(self, env_key: str) -> str | None:
        """Server-side key stored under ``env_key``, or None when unset/blank."""
        key = self.provider_keys.get(env_key, "").strip()
        return key or None


class Configuration:
    """Loads .env and config.yaml and assembles the frozen ``RelaySettings``."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for API keys
        self._config_path = config_path or os.getenv("RELAY_CONFIG") or os.path.join(
            os.path.dirname(__file__), "config.yaml"
        )
        self._config = self._load_yaml_config()

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file. A missing file means defaults."""
        if not os.path.exists(self._config_path):
            return {}
        with open(self._config_path) as file:
            return yaml.safe_load(file) or {}

    @staticmethod
    def provider_keys_from_env() -> dict[str, str]:
        """Collect the server-side key of every provider that has one set."""
        keys: dict[str, str] = {}
        for profile in PROFILES.values():
            if value := os.getenv(profile.env_key):
                keys[profile.env_key] = value
        return keys

    def get_server_config(self) -> dict[str, Any]:
        server = dict(self._config.get("server", {}) or {})
        if port := os.getenv("PORT"):
            server["port"] = int(port)
        return server

    def get_relay_config(self) -> dict[str, Any]:
        return self._config.get("relay", {}) or {}

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        return self._config.get("logging", {}) or {}

    def settings(self) -> RelaySettings:
        relay = self.get_relay_config()
        return RelaySettings(
            provider_keys=self.provider_keys_from_env(),
            max_payload_bytes=relay.get("max_payload_bytes", DEFAULT_MAX_PAYLOAD_BYTES),
            http=create_http_config_from_dict(self._config),
            server=ServerSettings(**self.get_server_config()),
            logging=LoggingSettings(**self.get_logging_config()),
        )
