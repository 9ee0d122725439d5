"""
Upstream HTTP client for the relay.

One ``httpx.AsyncClient`` per process carries every outbound provider call.
Calls are single-shot: provider status codes are handed back untouched for the
extractor to classify, and only transport failures raise here.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ConfigDict

from rp_relay.errors import UpstreamError

logger = logging.getLogger(__name__)


class HttpConfig(BaseModel):
    """Configuration for the outbound HTTP client."""

    model_config = ConfigDict(frozen=True)

    # None leaves the call to run until the transport gives up.
    timeout: float | None = None


class UpstreamHttpClient:
    """Thin async wrapper around httpx for provider calls."""

    def __init__(
        self,
        config: HttpConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the upstream HTTP client.

        Args:
            config: HTTP configuration settings
            transport: Optional httpx transport, used by tests to stub providers
        """
        self.config = config or HttpConfig()
        self.http = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            transport=transport,
        )

    async def post_json(
        self, url: str, headers: dict[str, str], payload: dict[str, Any]
    ) -> httpx.Response:
        """POST ``payload`` as JSON and return the response whatever its status."""
        try:
            return await self.http.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            host = urlsplit(url).netloc or url
            logger.error(f"Transport error calling {host}: {e!r}")
            raise UpstreamError(f"Could not reach {host}: {e!s}") from e

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self.http.aclose()

    async def __aenter__(self) -> UpstreamHttpClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


def read_body(response: httpx.Response) -> Any:
    """Decoded JSON body, or the raw text when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


def create_http_config_from_dict(config_dict: dict[str, Any]) -> HttpConfig:
    """
    Create HttpConfig from a dictionary (e.g., from YAML config).

    Args:
        config_dict: Dictionary containing HTTP configuration

    Returns:
        HttpConfig instance with validated settings
    """
    http_config = config_dict.get("http", {}) or {}

    return HttpConfig(timeout=http_config.get("timeout"))
