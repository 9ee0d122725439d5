"""
Main module for the RP Companion relay.
"""

from __future__ import annotations

import asyncio
import logging

from rp_relay.config import Configuration, RelaySettings
from rp_relay.llm.profiles import PROFILES
from rp_relay.server import run_server


def configure_logging(settings: RelaySettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.logging.level.upper(), logging.INFO),
        format=settings.logging.format,
    )


async def main() -> None:
    """Main entry point - HTTP interface only."""
    settings = Configuration().settings()
    configure_logging(settings)

    configured = [
        profile.label
        for profile in PROFILES.values()
        if settings.api_key_for(profile.env_key)
    ]
    logging.info(
        f"Server keys configured for: {', '.join(configured) or 'no providers'}"
    )

    await run_server(settings)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
